# infra/constructs/cdk_athena_workgroup.py
from constructs import Construct
from aws_cdk import (
    aws_athena as athena,
    aws_kms as kms,
    aws_s3 as s3,
)
from dataclasses import dataclass, field
from typing import List, Optional

from .cdk_athena_catalog import (
    DatabaseConstruct,
    DatabaseConstructProps,
    DatabaseOptions,
    TableConstruct,
    TableConstructProps,
)
from .cdk_athena_query_provider import QueryProviderConstruct
from ..utils.athena_sql import ResultEncryptionOption


@dataclass
class WorkGroupConstructProps:
    name: str
    result_output_location: s3.IBucket
    recursive_delete_option: bool = False
    description: Optional[str] = None
    enabled: Optional[bool] = True
    bytes_scanned_cutoff_per_query: Optional[int] = None
    enforce_work_group_configuration: Optional[bool] = None
    publish_cloud_watch_metrics_enabled: Optional[bool] = None
    requester_pays_enabled: Optional[bool] = None
    result_encryption_option: Optional[ResultEncryptionOption] = None
    # Implies SSE_KMS when no result_encryption_option is given
    result_encryption_kms_key: Optional[kms.IKey] = None
    databases: List[DatabaseOptions] = field(default_factory=list)


class WorkGroupConstruct(Construct):
    """Athena workgroup, optionally with the databases and tables that live in it."""

    def __init__(self, scope: Construct, id: str, props: WorkGroupConstructProps) -> None:
        super().__init__(scope, id)

        self.name = props.name

        encryption_option = props.result_encryption_option
        kms_key = props.result_encryption_kms_key
        if encryption_option is None and kms_key is not None:
            encryption_option = ResultEncryptionOption.SSE_KMS

        encryption_configuration = None
        if encryption_option is not None:
            encryption_configuration = athena.CfnWorkGroup.EncryptionConfigurationProperty(
                encryption_option=ResultEncryptionOption(encryption_option).value,
                kms_key=kms_key.key_arn if kms_key else None,
            )

        self.work_group = athena.CfnWorkGroup(
            self,
            "WorkGroup",
            name=props.name,
            description=props.description,
            recursive_delete_option=props.recursive_delete_option,
            state="ENABLED" if props.enabled is None or props.enabled else "DISABLED",
            work_group_configuration=athena.CfnWorkGroup.WorkGroupConfigurationProperty(
                bytes_scanned_cutoff_per_query=props.bytes_scanned_cutoff_per_query,
                enforce_work_group_configuration=props.enforce_work_group_configuration,
                publish_cloud_watch_metrics_enabled=props.publish_cloud_watch_metrics_enabled,
                requester_pays_enabled=props.requester_pays_enabled,
                result_configuration=athena.CfnWorkGroup.ResultConfigurationProperty(
                    encryption_configuration=encryption_configuration,
                    output_location=f"s3://{props.result_output_location.bucket_name}/",
                ),
            ),
        )

        self.creation_time: str = self.work_group.attr_creation_time

        self.databases: List[DatabaseConstruct] = []
        self.tables: List[TableConstruct] = []
        if props.databases:
            self._add_databases(props.databases)

    def _add_databases(self, databases: List[DatabaseOptions]) -> None:
        query_provider = QueryProviderConstruct.of(self)

        for options in databases:
            database = DatabaseConstruct(
                self,
                f"Database-{options.name}",
                DatabaseConstructProps(
                    name=options.name,
                    work_group_name=self.name,
                    query_provider=query_provider,
                ),
            )
            # Queries run inside the workgroup, so it has to exist first
            database.node.add_dependency(self.work_group)
            self.databases.append(database)

            for table_options in options.tables:
                table = TableConstruct(
                    database,
                    f"Table-{table_options.name}",
                    TableConstructProps.from_options(
                        table_options,
                        database_name=database.name,
                        work_group_name=self.name,
                        query_provider=query_provider,
                    ),
                )
                table.node.add_dependency(database.resource)
                self.tables.append(table)
