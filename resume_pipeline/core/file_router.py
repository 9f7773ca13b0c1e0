import logging
from enum import Enum
from pathlib import PurePosixPath
from typing import Dict, TypeVar

from .exceptions import UnsupportedFileTypeError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FileType(str, Enum):
    PDF = "Pdf"
    DOCX = "Docx"
    UNKNOWN = "Unknown"


EXTENSION_TYPES = {
    ".pdf": FileType.PDF,
    ".docx": FileType.DOCX,
}


def get_extension(key: str) -> str:
    """Lower-cased extension of a storage key, including the dot.

    Unlike PurePosixPath.suffix, a leading-dot name such as ".pdf" counts as
    an extension; a trailing dot does not.
    """
    name = PurePosixPath(key or "").name
    dot = name.rfind(".")
    if dot < 0 or dot == len(name) - 1:
        return ""
    return name[dot:].lower()


def classify_key(key: str) -> FileType:
    return EXTENSION_TYPES.get(get_extension(key), FileType.UNKNOWN)


class FileTypeRouter:
    """Classifies documents by extension and picks the extractor for a type"""

    def classify(self, identity) -> FileType:
        """Map a document identity to its FileType (case-insensitive extension)."""
        return classify_key(identity.key)

    def ensure_supported(self, identity) -> FileType:
        file_type = self.classify(identity)
        if file_type == FileType.UNKNOWN:
            extension = get_extension(identity.key)
            logger.error(f"Unsupported file type detected. Key: {identity.key}, Extension: '{extension}'")
            raise UnsupportedFileTypeError(extension)
        return file_type

    def select(self, identity, strategies: Dict[FileType, T]) -> T:
        """Return the strategy registered for the identity's type.

        Unknown types (and types with no registered strategy) raise
        UnsupportedFileTypeError.
        """
        file_type = self.ensure_supported(identity)
        if file_type not in strategies:
            raise UnsupportedFileTypeError(get_extension(identity.key))
        return strategies[file_type]
