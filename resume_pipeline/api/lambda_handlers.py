"""AWS Lambda entry points for the parse and analyze stages."""

import json
import logging
from functools import lru_cache
from urllib.parse import unquote_plus

from pydantic import ValidationError as ModelValidationError

from ..core.exceptions import PipelineError, ValidationError
from ..core.models import AnalyzeRequest, InvocationPayload
from .server import status_for

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_services():
    """Built once per Lambda container."""
    from config.logging_config import setup_logging
    from config.settings import settings

    from ..factory import build_aws_services

    setup_logging()
    return build_aws_services(settings)


def api_response(status: int, body: dict) -> dict:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json", "Access-Control-Allow-Origin": "*"},
        "body": json.dumps(body),
    }


def error_response(error: PipelineError) -> dict:
    return api_response(status_for(error), error.to_dict())


def parse_handler(event, context, services=None):
    """S3 put notification -> parse stage, one record at a time."""
    services = services or get_services()
    records = (event or {}).get("Records") or []
    if not records:
        logger.info("No S3 records found in event")
        return {"processed": []}

    processed = []
    for record in records:
        s3 = record.get("s3", {})
        bucket = s3.get("bucket", {}).get("name", "")
        key = unquote_plus(s3.get("object", {}).get("key", ""))
        logger.info(f"Processing file: s3://{bucket}/{key}")
        payload = services.parse_processor.process(bucket, key)
        processed.append({"correlationId": payload.correlation_id, "key": key})
    return {"processed": processed}


def _is_api_request(event) -> bool:
    return isinstance(event, dict) and ("httpMethod" in event or "requestContext" in event)


def analyze_handler(event, context, services=None):
    """API Gateway analyze requests, or direct hand-off payloads from the parse stage."""
    services = services or get_services()

    if not _is_api_request(event):
        logger.info("Detected direct invocation (parser payload)")
        try:
            payload = InvocationPayload.model_validate(event or {})
        except ModelValidationError as e:
            logger.error(f"Invalid invocation payload: {e}")
            raise ValidationError("Invalid invocation payload") from e
        profile = services.analyze_processor.handle_payload(payload)
        return {"resumeId": profile.resume_id}

    logger.info("Detected API Gateway request")
    body = event.get("body")
    if not body:
        return error_response(ValidationError("Request body cannot be empty"))
    try:
        request = AnalyzeRequest.model_validate_json(body)
    except ModelValidationError as e:
        logger.error(f"Invalid analyze request body: {e}")
        return error_response(ValidationError("Invalid JSON in request body"))

    claims = ((event.get("requestContext") or {}).get("authorizer") or {}).get("claims") or {}
    if claims.get("sub"):
        request = request.model_copy(update={"user_id": claims["sub"]})

    try:
        response = services.analyze_processor.analyze(request)
    except PipelineError as e:
        logger.error(f"Analyze request failed: {e}")
        return error_response(e)
    return api_response(200, response.to_dict())
