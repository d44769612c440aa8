import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..commons import init_logger


class ExecutionStatus(str, Enum):
    QUEUED = "QUEUED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self not in (ExecutionStatus.QUEUED, ExecutionStatus.RUNNING)


@dataclass(frozen=True)
class SubmitResult:
    execution_id: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class StatusResult:
    status: Optional[ExecutionStatus] = None
    reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class AthenaInterface:
    def __init__(self, log_level=None, athena_client=None):
        self.log_level = log_level or os.getenv("LOG_LEVEL", "INFO")
        self._logger = init_logger(__name__, self.log_level)
        self.athena_client = athena_client or boto3.client("athena")

    def start_query_execution(self, query_string, work_group=None) -> SubmitResult:
        params = {"QueryString": query_string}
        if work_group:
            params["WorkGroup"] = work_group

        try:
            response = self.athena_client.start_query_execution(**params)
        except (ClientError, BotoCoreError) as e:
            msg = "Error starting query execution in workgroup {}".format(work_group)
            self._logger.exception(msg)
            return SubmitResult(error=str(e))

        execution_id = response["QueryExecutionId"]
        self._logger.info("Started query execution %s", execution_id)
        return SubmitResult(execution_id=execution_id)

    def get_query_status(self, execution_id) -> StatusResult:
        try:
            response = self.athena_client.get_query_execution(QueryExecutionId=execution_id)
        except (ClientError, BotoCoreError) as e:
            msg = "Error reading status of query execution {}".format(execution_id)
            self._logger.exception(msg)
            return StatusResult(error=str(e))

        status = response["QueryExecution"]["Status"]
        state = status.get("State")
        try:
            execution_status = ExecutionStatus(state)
        except ValueError:
            return StatusResult(error="Unknown state {} for query execution {}".format(state, execution_id))

        return StatusResult(status=execution_status, reason=status.get("StateChangeReason"))
