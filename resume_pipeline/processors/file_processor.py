import logging
import time
from datetime import datetime, timezone
from typing import Dict, Optional

from ..core.cancellation import CancellationToken, ensure_token
from ..core.document_reader import validate_identity
from ..core.file_router import FileType, FileTypeRouter
from ..core.models import DocumentIdentity, FileProcessingResult
from ..core.text_normalizer import TextNormalizer

logger = logging.getLogger(__name__)

EMPTY_TEXT_MESSAGE = "Extracted text is empty or contains only whitespace"


class FileProcessingService:
    """Route a document to its extractor, then normalize the extracted text"""

    def __init__(self, extractors: Dict[FileType, object],
                 router: Optional[FileTypeRouter] = None,
                 normalizer: Optional[TextNormalizer] = None):
        self.extractors = extractors
        self.router = router or FileTypeRouter()
        self.normalizer = normalizer or TextNormalizer()

    def process(self, identity: DocumentIdentity,
                cancel_token: Optional[CancellationToken] = None,
                correlation_id: Optional[str] = None) -> FileProcessingResult:
        validate_identity(identity)
        token = ensure_token(cancel_token)
        start_time = time.time()

        extractor = self.router.select(identity, self.extractors)
        file_type = identity.file_type
        logger.info(f"Processing document. Key: {identity.key}, FileType: {file_type.value}")

        token.raise_if_cancelled()
        outcome = extractor.extract(identity, token, correlation_id)
        normalized = self.normalizer.normalize_text(outcome.raw_text)

        duration = (time.time() - start_time) * 1000
        if not normalized.is_valid:
            logger.warning(f"Document produced no usable text. Key: {identity.key}, Duration: {duration:.0f}ms")
            return FileProcessingResult(
                identity=identity,
                file_type=file_type,
                extracted_text=normalized.text,
                success=False,
                error_message=EMPTY_TEXT_MESSAGE,
                processed_at=datetime.now(timezone.utc),
            )

        logger.info(
            f"Document processed. Key: {identity.key}, TextLength: {len(normalized.text)}, "
            f"Duration: {duration:.0f}ms"
        )
        return FileProcessingResult(
            identity=identity,
            file_type=file_type,
            extracted_text=normalized.text,
            success=True,
            processed_at=datetime.now(timezone.utc),
        )
