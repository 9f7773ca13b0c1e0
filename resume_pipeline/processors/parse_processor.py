import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Optional

from ..core.cancellation import CancellationToken, ensure_token
from ..core.exceptions import (
    FileSizeExceededError,
    PipelineError,
    StageRejectedError,
    TextExtractionError,
)
from ..core.interfaces import DocumentStorage, StageSubmitter
from ..core.models import DocumentIdentity, InvocationPayload
from ..core.retry import RetryPolicy, handoff_policy, invoke
from .file_processor import FileProcessingService

logger = logging.getLogger(__name__)

ANONYMOUS_USER = "anonymous"
USER_KEY_PATTERN = re.compile(r"^private/([^/]+)/")
SIZE_WARNING_RATIO = 0.8


def user_id_from_key(key: str) -> str:
    """``private/{userId}/...`` keys belong to that user; anything else is anonymous."""
    match = USER_KEY_PATTERN.match(key or "")
    return match.group(1) if match else ANONYMOUS_USER


class ParseStageProcessor:
    """First pipeline stage: uploaded document -> normalized text -> hand-off.

    The hand-off is fire-and-forget from the caller's point of view: the
    processor only waits until the receiving stage accepts the payload,
    retrying with a linear backoff when it does not.
    """

    def __init__(self, file_service: FileProcessingService,
                 storage: DocumentStorage,
                 submitter: StageSubmitter,
                 max_file_size_bytes: int = 10 * 1024 * 1024,
                 retry_policy: Optional[RetryPolicy] = None):
        self.file_service = file_service
        self.storage = storage
        self.submitter = submitter
        self.max_file_size_bytes = max_file_size_bytes
        self.retry_policy = retry_policy or handoff_policy()

    def process(self, container_id: str, key: str,
                cancel_token: Optional[CancellationToken] = None,
                correlation_id: Optional[str] = None) -> InvocationPayload:
        correlation_id = correlation_id or str(uuid.uuid4())
        token = ensure_token(cancel_token)
        logger.info(f"Parse stage started. CorrelationId: {correlation_id}, Container: {container_id}, Key: {key}")

        try:
            identity = DocumentIdentity(container_id=container_id or "", key=key or "")
            self.file_service.router.ensure_supported(identity)
            self._check_size(identity, token, correlation_id)

            result = self.file_service.process(identity, token, correlation_id)
            if not result.success:
                raise TextExtractionError(result.error_message or "No text extracted")

            payload = InvocationPayload(
                correlation_id=correlation_id,
                resume_id=key,
                resume_text=result.extracted_text,
                source_container=container_id,
                source_key=key,
                file_type=result.file_type,
                extracted_at=result.processed_at,
                user_id=user_id_from_key(key),
            )
            self.hand_off(payload, token)
        except PipelineError as e:
            if e.correlation_id is None:
                e.correlation_id = correlation_id
            logger.error(f"Parse stage failed. CorrelationId: {correlation_id}, Error: {e}")
            raise

        logger.info(
            f"Parse stage completed. CorrelationId: {correlation_id}, "
            f"TextLength: {len(payload.resume_text)}, UserId: {payload.user_id}"
        )
        return payload

    def hand_off(self, payload: InvocationPayload, cancel_token: Optional[CancellationToken] = None):
        """Submit the payload to the next stage until it is accepted."""

        def submit():
            if not self.submitter.submit(payload, cancel_token):
                raise StageRejectedError(
                    f"Receiving stage did not accept payload {payload.correlation_id}",
                    correlation_id=payload.correlation_id,
                )
            return True

        return invoke(
            submit,
            self.retry_policy,
            payload.correlation_id,
            cancel_token=cancel_token,
            operation="Stage hand-off",
        )

    def _check_size(self, identity: DocumentIdentity, token: CancellationToken, correlation_id: str):
        file_size = self.storage.size(identity.container_id, identity.key, token)
        if file_size > self.max_file_size_bytes:
            logger.error(
                f"File size exceeds limit. CorrelationId: {correlation_id}, "
                f"Size: {file_size}, Max: {self.max_file_size_bytes}"
            )
            raise FileSizeExceededError(file_size, self.max_file_size_bytes)
        if file_size > self.max_file_size_bytes * SIZE_WARNING_RATIO:
            logger.warning(
                f"File size is approaching the limit. CorrelationId: {correlation_id}, "
                f"Size: {file_size}, Max: {self.max_file_size_bytes}"
            )
        return file_size
