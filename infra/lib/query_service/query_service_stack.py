# lib/query_service/query_service_stack.py
from aws_cdk import (
    Stack,
    CfnOutput,
    RemovalPolicy,
    aws_kms as kms,
    aws_s3 as s3,
)
from constructs import Construct
from dataclasses import dataclass

from infra.constructs.cdk_athena_catalog import DatabaseOptions, TableOptions
from infra.constructs.cdk_athena_query_provider import QueryProviderConstruct
from infra.constructs.cdk_athena_named_query import NamedQueryConstruct, NamedQueryConstructProps
from infra.constructs.cdk_athena_workgroup import WorkGroupConstruct, WorkGroupConstructProps
from infra.utils.athena_sql import FileFormat, ResultEncryptionOption, RowFormat
from ...utils.naming import create_name, to_catalog_name

REMOVAL_POLICY = RemovalPolicy.DESTROY


@dataclass
class QueryServiceStackProps:
    context_env: dict


class QueryServiceStack(Stack):

    def __init__(self, scope: Construct, construct_id: str, *, props: QueryServiceStackProps, **kwargs) -> None:
        super().__init__(scope, construct_id, **kwargs)

        context_env = props.context_env
        account_id = context_env.accountId

        # --- Encryption for query results and table data
        kms_key = kms.Key(
            self,
            "AthenaKey",
            alias=create_name("kms", "athena"),
            enable_key_rotation=True,
            removal_policy=REMOVAL_POLICY,
        )

        # --- Query results / table data bucket
        self.data_bucket = s3.Bucket(
            self,
            "AthenaBucket",
            bucket_name=create_name("s3", f"athena-{account_id}"),
            encryption=s3.BucketEncryption.KMS,
            encryption_key=kms_key,
            bucket_key_enabled=True,
            block_public_access=s3.BlockPublicAccess.BLOCK_ALL,
            enforce_ssl=True,
            removal_policy=REMOVAL_POLICY,
            auto_delete_objects=True,
        )

        work_group_name = create_name("athena", "workgroup")
        database_name = to_catalog_name("athena", "events")

        # --- Workgroup with its database and tables
        self.work_group = WorkGroupConstruct(
            self,
            "WorkGroup",
            WorkGroupConstructProps(
                name=work_group_name,
                description="Workgroup for the query service",
                recursive_delete_option=True,
                result_output_location=self.data_bucket,
                result_encryption_option=ResultEncryptionOption.SSE_KMS,
                result_encryption_kms_key=kms_key,
                publish_cloud_watch_metrics_enabled=True,
                databases=[
                    DatabaseOptions(
                        name=database_name,
                        tables=[
                            TableOptions(
                                name="access_logs",
                                columns=[
                                    ("request_time", "string"),
                                    ("status", "int"),
                                ],
                                row_format=RowFormat.delimited(";"),
                                file_format=FileFormat.TEXTFILE,
                                location=self.data_bucket,
                                location_key="data/access_logs",
                                encrypted_data=True,
                            ),
                        ],
                    ),
                ],
            ),
        )

        # Table data and results are written with the stack key
        kms_key.grant_encrypt_decrypt(QueryProviderConstruct.of(self).handler)

        NamedQueryConstruct(
            self,
            "ErrorsNamedQuery",
            NamedQueryConstructProps(
                database=database_name,
                name="server-errors",
                description="Requests that ended in a server error",
                query_string="SELECT * FROM access_logs WHERE status >= 500;",
                work_group=work_group_name,
            ),
        ).node.add_dependency(self.work_group)

        # --- Outputs
        CfnOutput(
            self,
            "oWorkGroupName",
            description="Name of the Athena workgroup",
            value=work_group_name,
        )

        CfnOutput(
            self,
            "oDatabaseName",
            description="Name of the Athena database",
            value=database_name,
        )

        CfnOutput(
            self,
            "oS3AthenaBucket",
            description="Bucket holding query results and table data",
            value=self.data_bucket.bucket_name,
        )
