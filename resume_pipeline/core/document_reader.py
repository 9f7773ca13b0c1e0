import io
import logging
import time
from typing import Iterable, Optional
from zipfile import BadZipFile

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from docx.oxml.ns import qn

from .cancellation import CancellationToken, ensure_token
from .exceptions import (
    InvocationFailureError,
    OperationCancelledError,
    PipelineError,
    TextExtractionError,
    ValidationError,
)
from .file_router import FileType
from .interfaces import DocumentStorage, OcrClient
from .models import DocumentIdentity, ExtractionOutcome, OcrBlock
from .retry import RetryPolicy, invoke, is_transient_ocr_error, ocr_policy

logger = logging.getLogger(__name__)

LINE_BLOCK = "LINE"


def validate_identity(identity: DocumentIdentity):
    """Reject identities with a blank container or key (never retried)."""
    if identity is None:
        raise ValidationError("Document identity cannot be null")
    if not identity.container_id or not identity.container_id.strip():
        raise ValidationError("Container id cannot be null or empty")
    if not identity.key or not identity.key.strip():
        raise ValidationError("Object key cannot be null or empty")


def blocks_to_text(blocks: Iterable[OcrBlock]) -> str:
    """Keep LINE blocks, order them top to bottom and join them with newlines."""
    lines = [block for block in blocks or [] if block.block_type == LINE_BLOCK]
    lines.sort(key=lambda block: block.vertical_position or 0.0)
    return "\n".join(block.text for block in lines if block.text)


def docx_to_text(data: bytes) -> str:
    """Concatenate the text runs of every body paragraph, one paragraph per line."""
    try:
        document = Document(io.BytesIO(data))
    except (BadZipFile, PackageNotFoundError) as e:
        raise TextExtractionError(f"File is not a valid DOCX container: {e}") from e
    except Exception as e:
        raise TextExtractionError(f"Failed to parse DOCX document structure: {e}") from e

    body = document.element.body
    if body is None:
        logger.error("DOCX file has no body content")
        raise TextExtractionError("DOCX file has no body content")

    paragraphs = []
    for paragraph in body.iter(qn("w:p")):
        text = "".join(node.text or "" for node in paragraph.iter(qn("w:t")))
        if text:
            paragraphs.append(text)

    logger.info(f"Extracted {len(paragraphs)} paragraphs from DOCX document")
    return "\n".join(paragraphs)


class OcrTextExtractor:
    """Extracts text from scanned PDFs through an OCR service"""

    def __init__(self, ocr_client: OcrClient, retry_policy: Optional[RetryPolicy] = None):
        self.ocr_client = ocr_client
        self.retry_policy = retry_policy or ocr_policy()

    def extract(self, identity: DocumentIdentity,
                cancel_token: Optional[CancellationToken] = None,
                correlation_id: Optional[str] = None) -> ExtractionOutcome:
        validate_identity(identity)
        token = ensure_token(cancel_token)
        start_time = time.time()
        logger.info(f"Starting OCR extraction. Container: {identity.container_id}, Key: {identity.key}")

        try:
            blocks = invoke(
                lambda: self.ocr_client.detect_text(identity.container_id, identity.key, token),
                self.retry_policy,
                correlation_id,
                is_retryable=is_transient_ocr_error,
                cancel_token=token,
                operation="OCR detect_text",
            )
        except OperationCancelledError:
            raise
        except InvocationFailureError as e:
            raise TextExtractionError(
                f"OCR extraction failed after {self.retry_policy.max_retries} retries: {e.cause}"
            ) from e.cause
        except PipelineError as e:
            logger.error(f"OCR extraction failed. Key: {identity.key}, Error: {e}")
            raise TextExtractionError(f"OCR failed to extract text from PDF: {e}") from e
        except Exception as e:
            logger.error(f"Unexpected error during OCR extraction. Key: {identity.key}, Error: {e}")
            raise TextExtractionError(f"Unexpected error during PDF text extraction: {e}") from e

        text = blocks_to_text(blocks)
        logger.info(
            f"OCR extraction completed. Key: {identity.key}, BlockCount: {len(blocks or [])}, "
            f"ExtractedTextLength: {len(text)}, Duration: {(time.time() - start_time) * 1000:.0f}ms"
        )
        return ExtractionOutcome(raw_text=text, success=True, file_type=FileType.PDF)


class DocxTextExtractor:
    """Extracts paragraph text from DOCX documents held in storage"""

    def __init__(self, storage: DocumentStorage):
        self.storage = storage

    def extract(self, identity: DocumentIdentity,
                cancel_token: Optional[CancellationToken] = None,
                correlation_id: Optional[str] = None) -> ExtractionOutcome:
        validate_identity(identity)
        token = ensure_token(cancel_token)
        start_time = time.time()
        logger.info(f"Starting DOCX extraction. Container: {identity.container_id}, Key: {identity.key}")

        token.raise_if_cancelled()
        try:
            data = self.storage.read(identity.container_id, identity.key, token)
        except OperationCancelledError:
            raise
        except Exception as e:
            logger.error(f"Failed to read DOCX file from storage. Key: {identity.key}, Error: {e}")
            raise TextExtractionError(f"Failed to read DOCX file from storage: {e}") from e

        logger.info(f"DOCX file downloaded. Key: {identity.key}, Size: {len(data)} bytes")
        text = docx_to_text(data)
        logger.info(
            f"DOCX extraction completed. Key: {identity.key}, ExtractedTextLength: {len(text)}, "
            f"Duration: {(time.time() - start_time) * 1000:.0f}ms"
        )
        return ExtractionOutcome(raw_text=text, success=True, file_type=FileType.DOCX)


def extractors_for(storage: DocumentStorage, ocr_client: OcrClient,
                   ocr_retry_policy: Optional[RetryPolicy] = None) -> dict:
    """Strategy table keyed by FileType."""
    return {
        FileType.PDF: OcrTextExtractor(ocr_client, ocr_retry_policy),
        FileType.DOCX: DocxTextExtractor(storage),
    }
