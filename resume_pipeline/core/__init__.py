from .cancellation import CancellationToken
from .document_reader import DocxTextExtractor, OcrTextExtractor, extractors_for
from .entity_extractor import EntityExtractor
from .file_router import FileType, FileTypeRouter
from .fit_analyzer import FitScoreAnalyzer
from .resume_analyzer import ResumeAnalyzer
from .retry import RetryPolicy, handoff_policy, invoke, ocr_policy
from .text_normalizer import TextNormalizer

__all__ = [
    "CancellationToken",
    "DocxTextExtractor",
    "EntityExtractor",
    "FileType",
    "FileTypeRouter",
    "FitScoreAnalyzer",
    "OcrTextExtractor",
    "ResumeAnalyzer",
    "RetryPolicy",
    "TextNormalizer",
    "extractors_for",
    "handoff_policy",
    "invoke",
    "ocr_policy",
]
