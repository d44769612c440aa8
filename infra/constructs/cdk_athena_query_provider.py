# infra/constructs/cdk_athena_query_provider.py

from aws_cdk import (
    Duration,
    Stack,
    aws_iam as iam,
    aws_lambda as _lambda,
    custom_resources as cr,
    aws_logs as logs,
)
from constructs import Construct
from dataclasses import dataclass
from typing import Optional
import os

QUERY_PROVIDER_ID = "com.amazonaws.cdk.athena.query-provider"


@dataclass
class QueryProviderConstructProps:
    lambda_code_dir: Optional[str] = "../scripts/lambda/athena_query/src"
    layer_code_dir: Optional[str] = "../lambda-layers"
    log_level: Optional[str] = "INFO"


class QueryProviderConstruct(Construct):
    """Lambda-backed provider that runs Athena DDL for database and table custom resources.

    There is one provider per stack. Use ``QueryProviderConstruct.of(scope)`` to get it,
    it is created the first time it is asked for. Props only apply on creation, asking
    again with different props raises ``ValueError``.
    """

    @classmethod
    def of(cls, scope: Construct, props: Optional[QueryProviderConstructProps] = None) -> "QueryProviderConstruct":
        stack = Stack.of(scope)
        existing = stack.node.try_find_child(QUERY_PROVIDER_ID)
        if existing is not None:
            if props is not None and props != existing.props:
                raise ValueError(
                    f"Query provider of stack {stack.node.path} already exists with {existing.props}, got {props}"
                )
            return existing
        return cls(stack, QUERY_PROVIDER_ID, props or QueryProviderConstructProps())

    def __init__(self, scope: Construct, id: str, props: QueryProviderConstructProps) -> None:
        super().__init__(scope, id)

        self.props = props
        lambda_code_dir = props.lambda_code_dir or "../scripts/lambda/athena_query/src"
        layer_code_dir = props.layer_code_dir or "../lambda-layers"
        log_level = props.log_level or "INFO"

        self.datalake_layer = _lambda.LayerVersion(
            self,
            "DatalakeLibraryLayer",
            code=_lambda.Code.from_asset(os.path.join(os.path.dirname(__file__), layer_code_dir)),
            compatible_runtimes=[_lambda.Runtime.PYTHON_3_12],
            description="Layer with datalake_library code for the Athena query Lambda",
        )

        self.handler = _lambda.Function(
            self,
            "QueryLambda",
            runtime=_lambda.Runtime.PYTHON_3_12,
            # Poll ceiling is 20 x 2s, keep headroom over it.
            timeout=Duration.minutes(2),
            memory_size=256,
            handler="lambda_function.lambda_handler",
            code=_lambda.Code.from_asset(os.path.join(os.path.dirname(__file__), lambda_code_dir)),
            layers=[self.datalake_layer],
            environment={"LOG_LEVEL": log_level},
            log_retention=logs.RetentionDays.ONE_WEEK,
            description="Runs Athena DDL statements for database and table custom resources",
        )

        # === Permissions for Athena, its result bucket and the Glue catalog ===
        for action in ("athena:*", "s3:*", "glue:*"):
            self.handler.add_to_role_policy(
                iam.PolicyStatement(
                    actions=[action],
                    resources=["*"],
                )
            )

        self.provider = cr.Provider(
            self,
            "QueryProvider",
            on_event_handler=self.handler,
            log_retention=logs.RetentionDays.ONE_WEEK,
        )

    @property
    def service_token(self) -> str:
        return self.provider.service_token
