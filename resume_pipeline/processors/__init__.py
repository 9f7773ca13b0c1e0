from .analyze_processor import AnalyzeStageProcessor
from .batch_processor import BatchProcessor
from .file_processor import FileProcessingService
from .parse_processor import ParseStageProcessor

__all__ = [
    "AnalyzeStageProcessor",
    "BatchProcessor",
    "FileProcessingService",
    "ParseStageProcessor",
]
