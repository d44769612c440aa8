"""
athena_query

Custom resource handler that runs the CREATE / DROP statements of Athena
databases and tables. Each lifecycle event submits one statement, polls it
until it settles and produces exactly one response.
"""
import json
import time
from dataclasses import dataclass, field
from typing import Optional

from datalake_library.commons import init_logger
from datalake_library.configuration.resource_configs import AthenaConfiguration
from datalake_library.interfaces.athena_interface import AthenaInterface, ExecutionStatus

logger = init_logger(__name__)

SUCCESS = "SUCCESS"
FAILED = "FAILED"

PHYSICAL_ID_PREFIX = "Query"

STATEMENT_PROPERTIES = {
    "Create": "CreateQueryString",
    "Update": "UpdateQueryString",
    "Delete": "DeleteQueryString",
}


@dataclass(frozen=True)
class LifecycleResponse:
    outcome: str
    physical_resource_id: str
    data: dict = field(default_factory=dict)
    # Only set on FAILED; statement failures stay in the logs.
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome == SUCCESS


def physical_id_for(request_id) -> str:
    return PHYSICAL_ID_PREFIX + ("" if request_id is None else str(request_id))


class QueryExecutionAdapter:
    def __init__(self, athena_interface, poll_interval=2, max_attempts=20, sleep=time.sleep):
        self._athena = athena_interface
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._sleep = sleep

    def handle(self, event) -> LifecycleResponse:
        request_id = event.get("RequestId", "") if isinstance(event, dict) else ""
        physical_id = physical_id_for(request_id)

        try:
            return self._handle(event, physical_id)
        except Exception as e:
            logger.exception("Unexpected error handling event")
            return LifecycleResponse(FAILED, physical_id, reason=str(e))

    def _handle(self, event, physical_id) -> LifecycleResponse:
        if not isinstance(event, dict):
            return self._failed(physical_id, "Event is not a mapping")

        properties = event.get("ResourceProperties")
        if not isinstance(properties, dict):
            return self._failed(physical_id, "Event has no ResourceProperties")

        request_type = event.get("RequestType")
        property_name = STATEMENT_PROPERTIES.get(request_type)
        if property_name is None:
            logger.warning("Unknown request type %s, using an empty statement", request_type)
            query_string = ""
        elif property_name not in properties:
            return self._failed(physical_id, "ResourceProperties has no {}".format(property_name))
        else:
            query_string = properties[property_name]

        work_group = properties.get("WorkGroup")

        submitted = self._athena.start_query_execution(query_string, work_group)
        if not submitted.ok:
            return self._failed(physical_id, submitted.error)

        execution_id = submitted.execution_id
        status = None
        for attempt in range(1, self.max_attempts + 1):
            result = self._athena.get_query_status(execution_id)
            if not result.ok:
                return self._failed(physical_id, result.error)

            status = result.status
            logger.info("Query %s is %s (attempt %s/%s)", execution_id, status.value, attempt, self.max_attempts)

            if status == ExecutionStatus.SUCCEEDED:
                logger.info("Query succeeded")
                return LifecycleResponse(SUCCESS, physical_id)

            if status.is_terminal:
                # Statement errors must not roll back the whole deployment.
                logger.error("Query failed or cancelled: %s", result.reason)
                return LifecycleResponse(SUCCESS, physical_id)

            if attempt < self.max_attempts:
                self._sleep(self.poll_interval)

        logger.warning(
            "Query %s timed out after %s attempts, last status %s",
            execution_id,
            self.max_attempts,
            status.value if status else None,
        )
        return LifecycleResponse(SUCCESS, physical_id)

    @staticmethod
    def _failed(physical_id, reason) -> LifecycleResponse:
        logger.error("Query could not be executed: %s", reason)
        return LifecycleResponse(FAILED, physical_id, reason=reason)


_adapter = None


def _get_adapter() -> QueryExecutionAdapter:
    global _adapter
    if _adapter is None:
        config = AthenaConfiguration()
        _adapter = QueryExecutionAdapter(
            AthenaInterface(log_level=config.log_level),
            poll_interval=config.poll_interval,
            max_attempts=config.max_attempts,
        )
    return _adapter


def handle(event) -> LifecycleResponse:
    try:
        adapter = _get_adapter()
    except Exception as e:
        logger.exception("Could not initialize the Athena client")
        request_id = event.get("RequestId", "") if isinstance(event, dict) else ""
        return LifecycleResponse(FAILED, physical_id_for(request_id), reason=str(e))
    return adapter.handle(event)


def lambda_handler(event, context):
    logger.info("EVENT: %s", json.dumps(event, ensure_ascii=False, default=str))
    response = handle(event)

    if not response.succeeded:
        raise RuntimeError(json.dumps({
            "error": response.reason,
            "requestType": event.get("RequestType") if isinstance(event, dict) else None,
            "physicalId": response.physical_resource_id,
        }))

    return {
        "PhysicalResourceId": response.physical_resource_id,
        "Data": response.data,
    }
