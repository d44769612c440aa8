from dataclasses import dataclass

@dataclass
class Environment:
    region: str
    environment: str
    project: str
    ownerAccount: str
    accountId: str


environments = {
    "dev": Environment(
        region="us-east-1",
        environment="dev",
        project="athena",
        ownerAccount="analytics",
        accountId="123456789012",
    ),
    # "prod": Environment(
    #     region="us-east-1",
    #     environment="prod",
    #     project="athena",
    #     ownerAccount="analytics",
    #     accountId="210987654321",
    # ),
}
