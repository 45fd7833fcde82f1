"""
Hello Lambda Function - Static greeting behind the API Gateway proxy.

Every request routed through the greedy ``{proxy+}`` resource (and the API
root) lands here, regardless of path or HTTP method, and receives the same
plain-text greeting.
"""

import json
from typing import Annotated, Any, Dict

from aws_lambda_env_modeler import get_environment_variables
from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import BaseModel, Field

GREETING = "Hello from Lambda!"

# Initialize AWS Powertools; service name comes from POWERTOOLS_SERVICE_NAME
logger = Logger()
tracer = Tracer()
metrics = Metrics(namespace="HelloLambdaProxy")


class HelloEnvVars(BaseModel):
    """Environment variables set on the function by the stack."""

    POWERTOOLS_SERVICE_NAME: Annotated[str, Field(
        min_length=1,
    )] = 'hello-service'

    LOG_LEVEL: Annotated[str, Field(
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$',
    )] = 'INFO'

    # API Gateway stage the function is deployed behind
    STAGE_NAME: Annotated[str, Field(
        min_length=1,
    )] = 'dev'


def describe_request(event: Dict[str, Any]) -> Dict[str, Any]:
    """Pull the request attributes worth logging out of a proxy event."""
    request_context = event.get("requestContext") or {}
    identity = request_context.get("identity") or {}
    return {
        "path": event.get("path", "/"),
        "http_method": event.get("httpMethod", "UNKNOWN"),
        "request_id": request_context.get("requestId", "unknown"),
        "source_ip": identity.get("sourceIp"),
    }


def _text_response(status_code: int, body: str, request_id: str) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {
            "Content-Type": "text/plain",
            "X-Request-ID": request_id,
        },
        "body": body,
    }


@metrics.log_metrics(capture_cold_start_metric=True)
@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Return the static greeting for any path and any method.

    Args:
        event: API Gateway proxy event
        context: Lambda context object

    Returns:
        API Gateway proxy response
    """
    try:
        env_vars = get_environment_variables(model=HelloEnvVars)
        request = describe_request(event)

        tracer.put_annotation("path", request["path"])
        tracer.put_annotation("http_method", request["http_method"])
        logger.info(
            "Greeting request received",
            extra={**request, "stage": env_vars.STAGE_NAME},
        )

        metrics.add_dimension(name="HttpMethod", value=request["http_method"])
        metrics.add_metric(name="GreetingCount", unit=MetricUnit.Count, value=1)

        return _text_response(200, GREETING, context.aws_request_id)

    except Exception as e:
        logger.exception(
            "Lambda invocation failed",
            extra={"error": str(e), "request_id": context.aws_request_id},
        )
        metrics.add_metric(name="ErrorCount", unit=MetricUnit.Count, value=1)

        response = _text_response(
            500,
            json.dumps(
                {
                    "message": "Internal server error",
                    "request_id": context.aws_request_id,
                }
            ),
            context.aws_request_id,
        )
        response["headers"]["Content-Type"] = "application/json"
        return response
