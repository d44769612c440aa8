#!/usr/bin/env python3
import aws_cdk as cdk

from infra.lib.query_service.query_service_stack import QueryServiceStack, QueryServiceStackProps
from infra.utils.naming import context_env, create_name

app = cdk.App()

QueryServiceStack(
    app,
    create_name("stack", "query-service"),
    props=QueryServiceStackProps(context_env=context_env),
    env=cdk.Environment(account=context_env.accountId, region=context_env.region),
)

app.synth()
