import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
LAMBDA_SRC = ROOT / "infra" / "scripts" / "lambda" / "athena_query" / "src"
LAYER_SRC = ROOT / "infra" / "lambda-layers" / "python"

for path in (LAMBDA_SRC, LAYER_SRC):
    sys.path.insert(0, str(path))


@pytest.fixture(autouse=True)
def aws_region(monkeypatch):
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
