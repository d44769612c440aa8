# infra/constructs/cdk_athena_named_query.py
from constructs import Construct
from aws_cdk import aws_athena as athena
from dataclasses import dataclass
from typing import Optional


@dataclass
class NamedQueryConstructProps:
    database: str
    query_string: str
    name: Optional[str] = None
    description: Optional[str] = None
    work_group: Optional[str] = None


class NamedQueryConstruct(Construct):
    def __init__(self, scope: Construct, id: str, props: NamedQueryConstructProps) -> None:
        super().__init__(scope, id)

        self.named_query = athena.CfnNamedQuery(
            self,
            "Resource",
            database=props.database,
            query_string=props.query_string,
            name=props.name,
            description=props.description,
            work_group=props.work_group,
        )

        self.named_query_id: str = self.named_query.attr_named_query_id
