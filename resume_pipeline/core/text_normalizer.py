import logging
import re
from typing import Optional

from .models import NormalizedText

logger = logging.getLogger(__name__)


class TextNormalizer:
    """Cleans raw extracted text while keeping its line structure"""

    # Runs of spaces/tabs; newlines are left alone
    EXCESSIVE_WHITESPACE = re.compile(r"[ \t]+")
    # Three or more newlines collapse to one blank line
    EXCESSIVE_NEWLINES = re.compile(r"\n{3,}")

    def normalize(self, raw_text: Optional[str]) -> str:
        """Normalize line endings, whitespace runs and blank-line runs."""
        if not raw_text:
            logger.warning("Received null or empty text for normalization")
            return ""

        text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
        text = self.EXCESSIVE_WHITESPACE.sub(" ", text)
        text = self.EXCESSIVE_NEWLINES.sub("\n\n", text)
        text = text.strip()

        lines = [line.rstrip() for line in text.split("\n")]
        # Lines that held only whitespace are empty now and may form new runs
        text = self.EXCESSIVE_NEWLINES.sub("\n\n", "\n".join(lines))

        logger.debug(
            f"Text normalization completed. RawLength: {len(raw_text)}, "
            f"NormalizedLength: {len(text)}, LineCount: {len(lines)}"
        )
        return text

    def is_valid(self, text: Optional[str]) -> bool:
        valid = bool(text and text.strip())
        if not valid:
            logger.warning("Text validation failed: text is null, empty, or whitespace-only")
        return valid

    def normalize_text(self, raw_text: Optional[str]) -> NormalizedText:
        text = self.normalize(raw_text)
        return NormalizedText(text=text, is_valid=self.is_valid(text))
