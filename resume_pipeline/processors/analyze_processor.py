import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Optional

from ..core.cancellation import CancellationToken
from ..core.exceptions import (
    OperationCancelledError,
    PartialFailureError,
    ProfileNotFoundError,
    ValidationError,
)
from ..core.interfaces import ProfileRepository
from ..core.models import (
    AnalysisRecord,
    AnalysisResult,
    AnalyzeRequest,
    AnalyzeResponse,
    InvocationPayload,
    ProfileRecord,
)
from ..core.resume_analyzer import ResumeAnalyzer

logger = logging.getLogger(__name__)

RESUME_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
STORAGE_KEY_MARKER = "private/"
SUCCESS_MESSAGE = "Analysis completed successfully"


def is_storage_key(resume_id: Optional[str]) -> bool:
    return bool(resume_id) and STORAGE_KEY_MARKER in resume_id.lower()


def validate_resume_id(resume_id: Optional[str]) -> bool:
    """Empty ids are fine (one is generated); storage keys are looked up as-is."""
    if not resume_id:
        return True
    if is_storage_key(resume_id):
        return True
    return bool(RESUME_ID_PATTERN.match(resume_id))


def session_name(result: AnalysisResult, now: Optional[datetime] = None) -> str:
    title = (result.job_title or "").strip()
    company = (result.company or "").strip()
    if title and company:
        return f"{title} at {company}"
    if title:
        return title
    now = now or datetime.now(timezone.utc)
    return f"Job Application - {now.strftime('%b %d, %Y')}"


class AnalyzeStageProcessor:
    """Second pipeline stage: text -> entities -> optional fit score -> stored profile"""

    def __init__(self, analyzer: ResumeAnalyzer, repository: ProfileRepository):
        self.analyzer = analyzer
        self.repository = repository

    def handle_payload(self, payload: Optional[InvocationPayload],
                       cancel_token: Optional[CancellationToken] = None) -> ProfileRecord:
        """Analyze freshly parsed text and store it as a new profile."""
        if payload is None:
            raise ValidationError("Invocation payload cannot be null")
        if not self.analyzer.validate_input(payload.resume_text):
            raise ValidationError(
                "Invalid CV text: text cannot be empty or whitespace only",
                correlation_id=payload.correlation_id,
            )

        logger.info(
            f"Processing extracted text. CorrelationId: {payload.correlation_id}, "
            f"SourceKey: {payload.resume_id}"
        )
        result = self.analyzer.analyze_cv(payload.resume_text, None, cancel_token)

        entities = result.entities
        profile = ProfileRecord(
            resume_id=str(uuid.uuid4()),
            name=entities.name,
            email=entities.email,
            phone=entities.phone,
            skills=entities.skills,
            resume_text=payload.resume_text,
            last_analysis=result,
            created_at=datetime.now(timezone.utc),
            user_id=payload.user_id,
            source_key=payload.resume_id,
        )
        self.repository.save_profile(profile)
        logger.info(
            f"Saved new profile. CorrelationId: {payload.correlation_id}, "
            f"ResumeId: {profile.resume_id}, SourceKey: {profile.source_key}"
        )
        return profile

    def analyze(self, request: AnalyzeRequest,
                cancel_token: Optional[CancellationToken] = None) -> AnalyzeResponse:
        """Analyze a resume (given directly or by id) against an optional job description."""
        if request is None:
            raise ValidationError("Request cannot be null")
        if not validate_resume_id(request.resume_id):
            raise ValidationError(
                "Resume identifier contains invalid characters. Only alphanumeric characters, "
                "hyphens, and underscores are allowed"
            )

        logger.info(f"Starting CV analysis for ResumeId: {request.resume_id or 'new'}")
        resume_text = request.resume_text
        existing = None
        if not self.analyzer.validate_input(resume_text) and request.resume_id:
            existing = self._load_existing(request.resume_id)
            if existing is not None and existing.resume_text.strip():
                resume_text = existing.resume_text

        if not self.analyzer.validate_input(resume_text):
            raise ValidationError("Resume text not found. Please upload a resume first.")

        result = self.analyzer.analyze_cv(resume_text, request.job_description, cancel_token)

        if existing is not None:
            resume_id = existing.resume_id
        elif request.resume_id and not is_storage_key(request.resume_id):
            resume_id = request.resume_id
        else:
            resume_id = str(uuid.uuid4())

        entities = result.entities
        now = datetime.now(timezone.utc)
        profile = ProfileRecord(
            resume_id=resume_id,
            name=entities.name,
            email=entities.email,
            phone=entities.phone,
            skills=entities.skills,
            resume_text=resume_text,
            last_analysis=result,
            created_at=existing.created_at if existing else now,
            user_id=request.user_id,
            source_key=request.resume_id if is_storage_key(request.resume_id) else (
                existing.source_key if existing else None
            ),
            job_title=result.job_title,
            company=result.company,
            session_name=session_name(result, now),
        )

        logger.info(f"Saving profile record for ResumeId: {resume_id}")
        self.repository.save_profile(profile)

        analysis = AnalysisRecord(
            resume_id=resume_id,
            analysis_timestamp=now,
            extraction_method=entities.method,
            entity_count=entities.total_entities_found,
            created_at=now,
        )
        try:
            self.repository.save_analysis(analysis)
        except OperationCancelledError:
            raise
        except Exception as e:
            logger.error(f"Profile saved but analysis record failed. ResumeId: {resume_id}, Error: {e}")
            raise PartialFailureError(
                f"Profile {resume_id} was saved but its analysis record could not be written: {e}",
                resume_id=resume_id,
                cause=e,
            ) from e

        logger.info(f"Analysis completed successfully for ResumeId: {resume_id}")
        return AnalyzeResponse(resume_id=resume_id, message=SUCCESS_MESSAGE, analysis=result)

    def get_profile(self, resume_id: str) -> ProfileRecord:
        """Look a profile up by id, or by storage key for ``private/...`` ids."""
        if not resume_id or not resume_id.strip():
            raise ValidationError("Missing resume ID")
        if is_storage_key(resume_id):
            profile = self.repository.get_profile_by_source_key(resume_id)
        else:
            profile = self.repository.get_profile(resume_id)
        if profile is None:
            raise ProfileNotFoundError(f"Resume not found: {resume_id}")
        return profile

    def _load_existing(self, resume_id: str) -> Optional[ProfileRecord]:
        if is_storage_key(resume_id):
            logger.info(f"ResumeId appears to be a storage key, querying by source key: {resume_id}")
            profile = self.repository.get_profile_by_source_key(resume_id)
            if profile is None:
                raise ProfileNotFoundError(
                    "The resume is still being processed. Please wait a moment and try again."
                )
            return profile
        return self.repository.get_profile(resume_id)
