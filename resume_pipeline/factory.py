"""Builds the pipeline's object graph for the configured backend."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .core.document_reader import extractors_for
from .core.entity_extractor import EntityExtractor
from .core.fit_analyzer import FitScoreAnalyzer
from .core.resume_analyzer import ResumeAnalyzer
from .core.retry import handoff_policy, ocr_policy
from .processors.analyze_processor import AnalyzeStageProcessor
from .processors.file_processor import FileProcessingService
from .processors.parse_processor import ParseStageProcessor

logger = logging.getLogger(__name__)


@dataclass
class Services:
    storage: Any
    file_service: FileProcessingService
    analyzer: ResumeAnalyzer
    parse_processor: ParseStageProcessor
    analyze_processor: AnalyzeStageProcessor
    repository: Any
    upload_container: str


def build_analyzer(ner_client, model_client, settings) -> ResumeAnalyzer:
    return ResumeAnalyzer(
        EntityExtractor(ner_client, ner_max_chars=settings.NER_MAX_CHARS),
        FitScoreAnalyzer(
            model_client,
            cv_max_chars=settings.CV_PROMPT_CHARS,
            jd_max_chars=settings.JD_PROMPT_CHARS,
            max_tokens=settings.BEDROCK_MAX_TOKENS,
            temperature=settings.BEDROCK_TEMPERATURE,
        ),
    )


def _assemble(settings, storage, ocr_client, ner_client, model_client, submitter,
              repository, upload_container: str) -> Services:
    extractors = extractors_for(
        storage, ocr_client, ocr_policy(settings.OCR_MAX_RETRIES, settings.OCR_BASE_DELAY)
    )
    file_service = FileProcessingService(extractors)
    analyzer = build_analyzer(ner_client, model_client, settings)
    parse_processor = ParseStageProcessor(
        file_service,
        storage,
        submitter,
        max_file_size_bytes=settings.max_file_size_bytes,
        retry_policy=handoff_policy(settings.HANDOFF_MAX_RETRIES, settings.HANDOFF_BASE_DELAY),
    )
    return Services(
        storage=storage,
        file_service=file_service,
        analyzer=analyzer,
        parse_processor=parse_processor,
        analyze_processor=AnalyzeStageProcessor(analyzer, repository),
        repository=repository,
        upload_container=upload_container,
    )


def build_local_services(settings, repository: Optional[Any] = None) -> Services:
    from .api.local_clients import LocalDocumentStorage, TesseractOcrClient
    from .api.ner_client import build_ner_client
    from .api.profile_store import InMemoryProfileRepository
    from .api.stage_client import HttpStageSubmitter

    storage = LocalDocumentStorage()
    ocr_client = TesseractOcrClient(
        storage,
        tesseract_cmd=settings.TESSERACT_PATH,
        language=settings.OCR_LANGUAGE,
        config=settings.OCR_CONFIG,
        dpi=settings.OCR_DPI,
        preprocess=settings.OCR_PREPROCESSING,
    )
    ner_client = build_ner_client(settings.NER_ENGINE, settings.SPACY_MODEL, settings.NER_MODEL, settings.USE_GPU)
    submitter = HttpStageSubmitter(settings.ANALYZER_URL, timeout=settings.HANDOFF_TIMEOUT)
    # No local generative model: fit scoring always uses the keyword heuristic
    return _assemble(
        settings, storage, ocr_client, ner_client, None, submitter,
        repository or InMemoryProfileRepository(), str(settings.UPLOAD_DIR),
    )


def build_aws_services(settings, repository: Optional[Any] = None) -> Services:
    from .api.aws_clients import (
        BedrockModelClient,
        ComprehendNerClient,
        LambdaStageSubmitter,
        S3DocumentStorage,
        TextractOcrClient,
    )
    from .api.profile_store import InMemoryProfileRepository

    region = settings.AWS_REGION
    return _assemble(
        settings,
        S3DocumentStorage(region_name=region),
        TextractOcrClient(region_name=region),
        ComprehendNerClient(region_name=region),
        BedrockModelClient(settings.BEDROCK_MODEL_ID, region_name=region),
        LambdaStageSubmitter(settings.ANALYZER_FUNCTION_NAME, region_name=region),
        repository or InMemoryProfileRepository(),
        settings.DOCUMENT_BUCKET or "",
    )


def build_services(settings, repository: Optional[Any] = None) -> Services:
    backend = (settings.BACKEND or "local").lower()
    logger.info(f"Building pipeline services. Backend: {backend}")
    if backend == "aws":
        return build_aws_services(settings, repository)
    if backend == "local":
        return build_local_services(settings, repository)
    raise ValueError(f"Unknown backend: {settings.BACKEND}")
