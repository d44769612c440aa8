import aws_cdk as cdk
from aws_cdk.assertions import Match, Template

from infra.lib.query_service.query_service_stack import QueryServiceStack, QueryServiceStackProps
from infra.utils.naming import context_env, create_name


def test_query_service_stack_synthesizes():
    app = cdk.App()
    stack = QueryServiceStack(
        app,
        "QueryService",
        props=QueryServiceStackProps(context_env=context_env),
    )

    template = Template.from_stack(stack)
    template.resource_count_is("AWS::Athena::WorkGroup", 1)
    template.resource_count_is("Custom::AthenaDatabase", 1)
    template.resource_count_is("Custom::AthenaTable", 1)
    template.resource_count_is("AWS::Athena::NamedQuery", 1)
    template.has_resource_properties("AWS::Athena::WorkGroup", {
        "Name": create_name("athena", "workgroup"),
        "WorkGroupConfiguration": {
            "ResultConfiguration": {
                "EncryptionConfiguration": {"EncryptionOption": "SSE_KMS"},
            },
        },
    })
    template.has_resource_properties("Custom::AthenaTable", {
        "CreateQueryString": Match.any_value(),
        "DeleteQueryString": "DROP TABLE IF EXISTS athena_dev_us_east_1_events_athena.access_logs",
    })
    template.has_output("oWorkGroupName", {"Value": create_name("athena", "workgroup")})
