# infra/constructs/cdk_athena_catalog.py
from constructs import Construct
from aws_cdk import (
    CustomResource,
    aws_s3 as s3,
)
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .cdk_athena_query_provider import QueryProviderConstruct
from ..utils.athena_sql import (
    CreateDatabaseStatement,
    CreateExternalTableStatement,
    DropDatabaseStatement,
    DropTableStatement,
    FileFormat,
    RowFormat,
)


def _query_resource(
    scope: Construct,
    resource_type: str,
    create_statement: str,
    delete_statement: str,
    work_group_name: Optional[str],
    query_provider: Optional[QueryProviderConstruct],
) -> CustomResource:
    provider = query_provider or QueryProviderConstruct.of(scope)

    properties = {
        "CreateQueryString": create_statement,
        "UpdateQueryString": create_statement,
        "DeleteQueryString": delete_statement,
    }
    if work_group_name:
        properties["WorkGroup"] = work_group_name

    return CustomResource(
        scope,
        "Resource",
        service_token=provider.service_token,
        resource_type=resource_type,
        properties=properties,
    )


@dataclass
class TableOptions:
    name: str
    columns: List[Tuple[str, str]]
    row_format: RowFormat
    file_format: FileFormat
    location: s3.IBucket
    location_key: Optional[str] = None
    encrypted_data: Optional[bool] = False


@dataclass
class DatabaseOptions:
    name: str
    tables: List[TableOptions] = field(default_factory=list)


@dataclass
class DatabaseConstructProps:
    name: str
    work_group_name: Optional[str] = None
    query_provider: Optional[QueryProviderConstruct] = None


class DatabaseConstruct(Construct):
    def __init__(self, scope: Construct, id: str, props: DatabaseConstructProps) -> None:
        super().__init__(scope, id)

        self.name = props.name
        self.work_group_name = props.work_group_name

        self.resource = _query_resource(
            self,
            "Custom::AthenaDatabase",
            create_statement=CreateDatabaseStatement(self.name).render(),
            delete_statement=DropDatabaseStatement(self.name).render(),
            work_group_name=self.work_group_name,
            query_provider=props.query_provider,
        )


@dataclass
class TableConstructProps:
    name: str
    columns: List[Tuple[str, str]]
    row_format: RowFormat
    file_format: FileFormat
    location: s3.IBucket
    database_name: Optional[str] = None
    work_group_name: Optional[str] = None
    location_key: Optional[str] = None
    encrypted_data: Optional[bool] = False
    query_provider: Optional[QueryProviderConstruct] = None

    @classmethod
    def from_options(
        cls,
        options: TableOptions,
        database_name: Optional[str] = None,
        work_group_name: Optional[str] = None,
        query_provider: Optional[QueryProviderConstruct] = None,
    ) -> "TableConstructProps":
        return cls(
            name=options.name,
            columns=options.columns,
            row_format=options.row_format,
            file_format=options.file_format,
            location=options.location,
            database_name=database_name,
            work_group_name=work_group_name,
            location_key=options.location_key,
            encrypted_data=options.encrypted_data,
            query_provider=query_provider,
        )


class TableConstruct(Construct):
    def __init__(self, scope: Construct, id: str, props: TableConstructProps) -> None:
        super().__init__(scope, id)

        self.name = props.name
        self.database_name = props.database_name

        create_statement = CreateExternalTableStatement(
            name=props.name,
            columns=props.columns,
            row_format=props.row_format,
            file_format=props.file_format,
            location_bucket_name=props.location.bucket_name,
            location_key=props.location_key,
            database_name=props.database_name,
            encrypted_data=bool(props.encrypted_data),
        )

        self.resource = _query_resource(
            self,
            "Custom::AthenaTable",
            create_statement=create_statement.render(),
            delete_statement=DropTableStatement(props.name, props.database_name).render(),
            work_group_name=props.work_group_name,
            query_provider=props.query_provider,
        )
