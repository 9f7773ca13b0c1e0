from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel

from .file_router import FileType, classify_key


class PipelineModel(BaseModel):
    """Immutable model, camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ExtractionMethod(str, Enum):
    PRIMARY = "Primary"
    FALLBACK = "Fallback"


class ScoringMethod(str, Enum):
    SKIPPED = "Skipped"
    MODEL = "Model"
    HEURISTIC = "Heuristic"


class DocumentIdentity(PipelineModel):
    container_id: str
    key: str

    @computed_field
    @property
    def file_type(self) -> FileType:
        return classify_key(self.key)

    def __str__(self) -> str:
        return f"{self.container_id}/{self.key}"


class OcrBlock(PipelineModel):
    block_type: str
    text: Optional[str] = None
    vertical_position: Optional[float] = None


class NerEntity(PipelineModel):
    type: str
    text: str
    score: float = 0.0


class ModelPrompt(PipelineModel):
    system: str
    user: str
    max_tokens: int = 4000
    temperature: float = 0.1


class ExtractionOutcome(PipelineModel):
    raw_text: str = ""
    success: bool
    file_type: FileType
    error_message: Optional[str] = None


class NormalizedText(PipelineModel):
    text: str
    is_valid: bool


class FileProcessingResult(PipelineModel):
    identity: DocumentIdentity
    file_type: FileType
    extracted_text: str = ""
    success: bool = False
    error_message: Optional[str] = None
    processed_at: datetime


class ExtractedEntities(PipelineModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    method: ExtractionMethod = ExtractionMethod.FALLBACK

    @computed_field
    @property
    def total_entities_found(self) -> int:
        return (
            (1 if self.name else 0)
            + (1 if self.email else 0)
            + (1 if self.phone else 0)
            + len(self.skills)
        )


class ImprovementItem(PipelineModel):
    area: str = ""
    advice: str = ""


class AnalysisResult(PipelineModel):
    fit_score: Optional[float] = Field(default=None, ge=0, le=100)
    matched_skills: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    recommendation: str = ""
    improvement_plan: List[ImprovementItem] = Field(default_factory=list)
    job_title: Optional[str] = None
    company: Optional[str] = None
    job_description: Optional[str] = None
    entities: ExtractedEntities = Field(default_factory=ExtractedEntities)
    scoring: ScoringMethod = ScoringMethod.SKIPPED


class InvocationPayload(PipelineModel):
    correlation_id: str
    resume_id: Optional[str] = None
    resume_text: str = ""
    source_container: str = ""
    source_key: str = ""
    file_type: FileType = FileType.UNKNOWN
    extracted_at: datetime
    user_id: Optional[str] = None


class AnalyzeRequest(PipelineModel):
    resume_id: Optional[str] = None
    resume_text: Optional[str] = None
    job_description: Optional[str] = None
    user_id: Optional[str] = None


class ProfileRecord(PipelineModel):
    resume_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    skills: List[str] = Field(default_factory=list)
    resume_text: str = ""
    last_analysis: Optional[AnalysisResult] = None
    created_at: datetime
    user_id: Optional[str] = None
    source_key: Optional[str] = None
    job_title: Optional[str] = None
    company: Optional[str] = None
    session_name: Optional[str] = None


class AnalysisRecord(PipelineModel):
    resume_id: str
    analysis_timestamp: datetime
    extraction_method: ExtractionMethod
    entity_count: int = Field(ge=0)
    created_at: datetime


class AnalyzeResponse(PipelineModel):
    resume_id: str
    message: str
    analysis: AnalysisResult
