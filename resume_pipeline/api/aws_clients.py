"""boto3 adapters for the pipeline's external collaborators."""

import json
import logging
from typing import List, Optional

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectTimeoutError,
    EndpointConnectionError,
    ReadTimeoutError,
)

from ..core.cancellation import CancellationToken, ensure_token
from ..core.exceptions import DocumentNotFoundError, OcrServiceError, StorageError
from ..core.models import InvocationPayload, ModelPrompt, NerEntity, OcrBlock

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "bedrock-2023-05-31"
ACCEPTED_STATUS = 202
NOT_FOUND_CODES = {"NoSuchKey", "NotFound", "404"}
TRANSIENT_OCR_CODES = {
    "ThrottlingException",
    "ProvisionedThroughputExceededException",
    "InternalServerError",
    "ServiceUnavailableException",
    "LimitExceededException",
}
TRANSIENT_STATUS = {500, 503}
TRANSIENT_BOTO_ERRORS = (EndpointConnectionError, ConnectTimeoutError, ReadTimeoutError)


def _error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "")


def _status_code(error: ClientError) -> int:
    return error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0)


class S3DocumentStorage:
    """Documents in S3: container = bucket, key = object key"""

    def __init__(self, client=None, region_name: Optional[str] = None):
        self.client = client or boto3.client("s3", region_name=region_name)

    def read(self, container_id: str, key: str, cancel_token: Optional[CancellationToken] = None) -> bytes:
        ensure_token(cancel_token).raise_if_cancelled()
        try:
            response = self.client.get_object(Bucket=container_id, Key=key)
            return response["Body"].read()
        except ClientError as e:
            raise self._translate(e, container_id, key) from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to read s3://{container_id}/{key}: {e}") from e

    def size(self, container_id: str, key: str, cancel_token: Optional[CancellationToken] = None) -> int:
        ensure_token(cancel_token).raise_if_cancelled()
        try:
            response = self.client.head_object(Bucket=container_id, Key=key)
            return int(response["ContentLength"])
        except ClientError as e:
            raise self._translate(e, container_id, key) from e
        except BotoCoreError as e:
            raise StorageError(f"Failed to stat s3://{container_id}/{key}: {e}") from e

    def write(self, container_id: str, key: str, data: bytes) -> str:
        try:
            self.client.put_object(Bucket=container_id, Key=key, Body=data)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to write s3://{container_id}/{key}: {e}") from e
        return f"s3://{container_id}/{key}"

    @staticmethod
    def _translate(error: ClientError, container_id: str, key: str) -> StorageError:
        code = _error_code(error)
        if code in NOT_FOUND_CODES or _status_code(error) == 404:
            return DocumentNotFoundError(f"Document not found: s3://{container_id}/{key}")
        return StorageError(f"S3 request failed for s3://{container_id}/{key}: {code or error}")


class TextractOcrClient:
    def __init__(self, client=None, region_name: Optional[str] = None):
        self.client = client or boto3.client("textract", region_name=region_name)

    def detect_text(self, container_id: str, key: str,
                    cancel_token: Optional[CancellationToken] = None) -> List[OcrBlock]:
        ensure_token(cancel_token).raise_if_cancelled()
        try:
            response = self.client.detect_document_text(
                Document={"S3Object": {"Bucket": container_id, "Name": key}}
            )
        except ClientError as e:
            code = _error_code(e)
            transient = code in TRANSIENT_OCR_CODES or _status_code(e) in TRANSIENT_STATUS
            raise OcrServiceError(f"Textract error {code}: {e}", transient=transient, service_code=code) from e
        except BotoCoreError as e:
            transient = isinstance(e, TRANSIENT_BOTO_ERRORS)
            raise OcrServiceError(f"Textract request failed: {e}", transient=transient) from e

        blocks = []
        for block in response.get("Blocks", []):
            top = block.get("Geometry", {}).get("BoundingBox", {}).get("Top")
            blocks.append(OcrBlock(
                block_type=block.get("BlockType", ""),
                text=block.get("Text"),
                vertical_position=top,
            ))
        return blocks


class ComprehendNerClient:
    def __init__(self, client=None, region_name: Optional[str] = None, language_code: str = "en"):
        self.client = client or boto3.client("comprehend", region_name=region_name)
        self.language_code = language_code

    def detect_entities(self, text: str, cancel_token: Optional[CancellationToken] = None) -> List[NerEntity]:
        ensure_token(cancel_token).raise_if_cancelled()
        response = self.client.detect_entities(Text=text, LanguageCode=self.language_code)
        return [
            NerEntity(type=entity.get("Type", ""), text=entity.get("Text", ""), score=entity.get("Score", 0.0))
            for entity in response.get("Entities", [])
        ]


class BedrockModelClient:
    """Anthropic messages API on Bedrock; returns the first content block's text"""

    def __init__(self, model_id: str, client=None, region_name: Optional[str] = None):
        self.model_id = model_id
        self.client = client or boto3.client("bedrock-runtime", region_name=region_name)

    def invoke(self, prompt: ModelPrompt, cancel_token: Optional[CancellationToken] = None) -> str:
        ensure_token(cancel_token).raise_if_cancelled()
        body = {
            "anthropic_version": ANTHROPIC_VERSION,
            "max_tokens": prompt.max_tokens,
            "system": prompt.system,
            "messages": [{"role": "user", "content": prompt.user}],
            "temperature": prompt.temperature,
        }
        response = self.client.invoke_model(
            modelId=self.model_id,
            contentType="application/json",
            accept="application/json",
            body=json.dumps(body),
        )
        payload = json.loads(response["body"].read())
        return payload["content"][0]["text"]


class LambdaStageSubmitter:
    """Asynchronous Lambda invoke; Lambda answers 202 when it queued the event"""

    def __init__(self, function_name: str, client=None, region_name: Optional[str] = None):
        self.function_name = function_name
        self.client = client or boto3.client("lambda", region_name=region_name)

    def submit(self, payload: InvocationPayload, cancel_token: Optional[CancellationToken] = None) -> bool:
        ensure_token(cancel_token).raise_if_cancelled()
        response = self.client.invoke(
            FunctionName=self.function_name,
            InvocationType="Event",
            Payload=json.dumps(payload.to_dict()).encode("utf-8"),
        )
        status = response.get("StatusCode")
        logger.info(
            f"Invoked {self.function_name}. CorrelationId: {payload.correlation_id}, StatusCode: {status}"
        )
        return status == ACCEPTED_STATUS
