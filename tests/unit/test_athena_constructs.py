import json

import aws_cdk as cdk
import pytest
from aws_cdk import aws_kms as kms, aws_s3 as s3
from aws_cdk.assertions import Match, Template

from infra.constructs.cdk_athena_catalog import (
    DatabaseConstruct,
    DatabaseConstructProps,
    DatabaseOptions,
    TableConstruct,
    TableConstructProps,
    TableOptions,
)
from infra.constructs.cdk_athena_named_query import NamedQueryConstruct, NamedQueryConstructProps
from infra.constructs.cdk_athena_query_provider import QueryProviderConstruct, QueryProviderConstructProps
from infra.constructs.cdk_athena_workgroup import WorkGroupConstruct, WorkGroupConstructProps
from infra.utils.athena_sql import FileFormat, ResultEncryptionOption, RowFormat


def _stack():
    stack = cdk.Stack()
    bucket = s3.Bucket.from_bucket_name(stack, "Bucket", "data-bucket")
    return stack, bucket


def _table_options(bucket, **overrides):
    options = dict(
        name="world",
        columns=[("ColumnA", "string"), ("ColumnB", "int")],
        row_format=RowFormat.delimited(";"),
        file_format=FileFormat.TEXTFILE,
        location=bucket,
    )
    options.update(overrides)
    return TableOptions(**options)


def _query_lambdas(template):
    return template.find_resources(
        "AWS::Lambda::Function",
        {"Properties": {"Handler": "lambda_function.lambda_handler"}},
    )


def test_workgroup():
    stack, bucket = _stack()

    WorkGroupConstruct(
        stack,
        "WorkGroup",
        WorkGroupConstructProps(
            name="hello",
            description="world",
            enabled=True,
            recursive_delete_option=True,
            result_output_location=bucket,
            enforce_work_group_configuration=True,
            publish_cloud_watch_metrics_enabled=True,
            requester_pays_enabled=True,
            bytes_scanned_cutoff_per_query=10_000_000,
            result_encryption_option=ResultEncryptionOption.SSE_S3,
        ),
    )

    template = Template.from_stack(stack)
    template.has_resource_properties("AWS::Athena::WorkGroup", {
        "Name": "hello",
        "Description": "world",
        "RecursiveDeleteOption": True,
        "State": "ENABLED",
        "WorkGroupConfiguration": {
            "BytesScannedCutoffPerQuery": 10_000_000,
            "EnforceWorkGroupConfiguration": True,
            "PublishCloudWatchMetricsEnabled": True,
            "RequesterPaysEnabled": True,
            "ResultConfiguration": {
                "EncryptionConfiguration": {"EncryptionOption": "SSE_S3"},
                "OutputLocation": "s3://data-bucket/",
            },
        },
    })
    # No databases, no query provider
    assert _query_lambdas(template) == {}


def test_disabled_workgroup_without_encryption():
    stack, bucket = _stack()

    WorkGroupConstruct(
        stack,
        "WorkGroup",
        WorkGroupConstructProps(name="hello", enabled=False, result_output_location=bucket),
    )

    Template.from_stack(stack).has_resource_properties("AWS::Athena::WorkGroup", {
        "State": "DISABLED",
        "WorkGroupConfiguration": {
            "ResultConfiguration": {
                "EncryptionConfiguration": Match.absent(),
                "OutputLocation": "s3://data-bucket/",
            },
        },
    })


def test_workgroup_with_result_encryption_key():
    stack, bucket = _stack()
    key = kms.Key(stack, "Key")

    WorkGroupConstruct(
        stack,
        "WorkGroup",
        WorkGroupConstructProps(
            name="hello",
            result_output_location=bucket,
            result_encryption_kms_key=key,
        ),
    )

    Template.from_stack(stack).has_resource_properties("AWS::Athena::WorkGroup", {
        "WorkGroupConfiguration": {
            "ResultConfiguration": {
                "EncryptionConfiguration": {
                    "EncryptionOption": "SSE_KMS",
                    "KmsKey": {"Fn::GetAtt": [Match.string_like_regexp("^Key"), "Arn"]},
                },
            },
        },
    })


def test_workgroup_with_database_and_table():
    stack, bucket = _stack()

    work_group = WorkGroupConstruct(
        stack,
        "WorkGroup",
        WorkGroupConstructProps(
            name="hello",
            recursive_delete_option=True,
            result_output_location=bucket,
            databases=[DatabaseOptions(name="hello", tables=[_table_options(bucket)])],
        ),
    )

    create_table = (
        "CREATE EXTERNAL TABLE IF NOT EXISTS hello.world (ColumnA string, ColumnB int)\n"
        "ROW FORMAT DELIMITED FIELDS TERMINATED BY ';'\n"
        "STORED AS TEXTFILE\n"
        "LOCATION 's3://data-bucket/'\n"
        "TBLPROPERTIES ('has_encrypted_data' = 'false')"
    )

    template = Template.from_stack(stack)
    template.has_resource_properties("Custom::AthenaDatabase", {
        "CreateQueryString": "CREATE DATABASE IF NOT EXISTS hello",
        "UpdateQueryString": "CREATE DATABASE IF NOT EXISTS hello",
        "DeleteQueryString": "DROP DATABASE IF EXISTS hello CASCADE",
        "WorkGroup": "hello",
    })
    template.has_resource_properties("Custom::AthenaTable", {
        "CreateQueryString": create_table,
        "UpdateQueryString": create_table,
        "DeleteQueryString": "DROP TABLE IF EXISTS hello.world",
        "WorkGroup": "hello",
    })
    assert [database.name for database in work_group.databases] == ["hello"]
    assert [table.name for table in work_group.tables] == ["world"]


def test_catalog_resources_wait_for_their_parents():
    stack, bucket = _stack()

    WorkGroupConstruct(
        stack,
        "WorkGroup",
        WorkGroupConstructProps(
            name="hello",
            result_output_location=bucket,
            databases=[DatabaseOptions(name="hello", tables=[_table_options(bucket)])],
        ),
    )

    template = Template.from_stack(stack)
    work_group_ids = set(template.find_resources("AWS::Athena::WorkGroup"))
    database_ids = set(template.find_resources("Custom::AthenaDatabase"))
    (database,) = template.find_resources("Custom::AthenaDatabase").values()
    (table,) = template.find_resources("Custom::AthenaTable").values()

    assert work_group_ids & set(database["DependsOn"])
    assert database_ids & set(table["DependsOn"])


def test_one_query_provider_per_stack():
    stack, bucket = _stack()

    WorkGroupConstruct(
        stack,
        "WorkGroup",
        WorkGroupConstructProps(
            name="hello",
            result_output_location=bucket,
            databases=[
                DatabaseOptions(name="first", tables=[_table_options(bucket, name="a")]),
                DatabaseOptions(name="second", tables=[_table_options(bucket, name="b")]),
            ],
        ),
    )
    DatabaseConstruct(stack, "Standalone", DatabaseConstructProps(name="third"))

    template = Template.from_stack(stack)
    template.resource_count_is("Custom::AthenaDatabase", 3)
    template.resource_count_is("Custom::AthenaTable", 2)
    assert len(_query_lambdas(template)) == 1
    assert QueryProviderConstruct.of(stack).node.path == QueryProviderConstruct.of(bucket).node.path


def test_query_lambda_settings():
    stack, _ = _stack()

    DatabaseConstruct(stack, "Database", DatabaseConstructProps(name="hello"))

    template = Template.from_stack(stack)
    template.has_resource_properties("AWS::Lambda::Function", {
        "Handler": "lambda_function.lambda_handler",
        "Runtime": "python3.12",
        "Timeout": 120,
        "Environment": {"Variables": {"LOG_LEVEL": "INFO"}},
    })
    policies = json.dumps(template.find_resources("AWS::IAM::Policy"))
    for action in ("athena:*", "s3:*", "glue:*"):
        assert f"\"{action}\"" in policies


def test_standalone_catalog_resources_without_work_group():
    stack, bucket = _stack()

    DatabaseConstruct(stack, "Database", DatabaseConstructProps(name="hello"))
    TableConstruct(
        stack,
        "Table",
        TableConstructProps(
            name="world",
            columns=[("ColumnA", "string")],
            row_format=RowFormat.serde("org.openx.data.jsonserde.JsonSerDe"),
            file_format=FileFormat.JSONFILE,
            location=bucket,
            location_key="data",
            encrypted_data=True,
        ),
    )

    template = Template.from_stack(stack)
    template.has_resource_properties("Custom::AthenaDatabase", {
        "CreateQueryString": "CREATE DATABASE IF NOT EXISTS hello",
        "WorkGroup": Match.absent(),
    })
    template.has_resource_properties("Custom::AthenaTable", {
        "CreateQueryString": Match.string_like_regexp("LOCATION 's3://data-bucket/data/'"),
        "DeleteQueryString": "DROP TABLE IF EXISTS world",
        "WorkGroup": Match.absent(),
    })


def test_named_query():
    stack = cdk.Stack()

    NamedQueryConstruct(
        stack,
        "NamedQuery",
        NamedQueryConstructProps(
            name="hello",
            description="world",
            database="db",
            query_string="SELECT * FROM Foo;",
        ),
    )

    Template.from_stack(stack).has_resource_properties("AWS::Athena::NamedQuery", {
        "Database": "db",
        "QueryString": "SELECT * FROM Foo;",
        "Description": "world",
        "Name": "hello",
    })


def test_invalid_database_name_fails_at_synth_time():
    stack, bucket = _stack()

    with pytest.raises(ValueError):
        DatabaseConstruct(stack, "Database", DatabaseConstructProps(name="sales-db"))

    with pytest.raises(ValueError):
        WorkGroupConstruct(
            stack,
            "WorkGroup",
            WorkGroupConstructProps(
                name="hello",
                result_output_location=bucket,
                databases=[DatabaseOptions(name="hello", tables=[_table_options(bucket, name="t;drop")])],
            ),
        )


def test_query_provider_props_apply_once():
    stack = cdk.Stack()
    debug = QueryProviderConstructProps(log_level="DEBUG")

    provider = QueryProviderConstruct.of(stack, debug)

    assert QueryProviderConstruct.of(stack).node.path == provider.node.path
    assert QueryProviderConstruct.of(stack, QueryProviderConstructProps(log_level="DEBUG")).node.path == provider.node.path
    with pytest.raises(ValueError):
        QueryProviderConstruct.of(stack, QueryProviderConstructProps(log_level="INFO"))

    Template.from_stack(stack).has_resource_properties("AWS::Lambda::Function", {
        "Handler": "lambda_function.lambda_handler",
        "Environment": {"Variables": {"LOG_LEVEL": "DEBUG"}},
    })
