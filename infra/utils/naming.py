from .environments import environments

config = 'dev'

context_env = environments[config]
region = context_env.region
environment = context_env.environment
project = context_env.project


def create_name(service: str, functionality: str) -> str:
    return f"{project}-{environment}-{region}-{functionality}-{service}".lower()


def to_catalog_name(service: str, functionality: str) -> str:
    """Glue/Athena catalog identifiers are snake_case without hyphens."""
    return create_name(service, functionality).replace("-", "_")
