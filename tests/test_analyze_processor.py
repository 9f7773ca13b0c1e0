import re
from datetime import datetime, timezone

import pytest

from resume_pipeline.core.entity_extractor import EntityExtractor
from resume_pipeline.core.exceptions import (
    PartialFailureError,
    ProfileNotFoundError,
    ValidationError,
)
from resume_pipeline.core.fit_analyzer import FitScoreAnalyzer
from resume_pipeline.core.models import AnalysisResult, AnalyzeRequest, ExtractionMethod, ScoringMethod
from resume_pipeline.core.resume_analyzer import ResumeAnalyzer
from resume_pipeline.processors.analyze_processor import (
    AnalyzeStageProcessor,
    session_name,
    validate_resume_id,
)

from conftest import FakeModelClient, FakeNerClient


class FailingAnalysisRepository:
    """Saves profiles but fails every analysis write"""

    def __init__(self, inner):
        self.inner = inner

    def save_profile(self, profile):
        self.inner.save_profile(profile)

    def get_profile(self, resume_id):
        return self.inner.get_profile(resume_id)

    def get_profile_by_source_key(self, source_key):
        return self.inner.get_profile_by_source_key(source_key)

    def save_analysis(self, analysis):
        raise IOError("table unavailable")


@pytest.fixture
def processor(heuristic_analyzer, repository):
    return AnalyzeStageProcessor(heuristic_analyzer, repository)


def test_handle_payload_saves_new_profile(processor, repository, sample_payload):
    profile = processor.handle_payload(sample_payload)

    assert profile.resume_id != sample_payload.resume_id
    assert profile.source_key == sample_payload.resume_id
    assert profile.user_id == "user-42"
    assert profile.name == "John Doe"
    assert profile.email == "john.doe@example.com"
    assert profile.skills == ["Python", "AWS", "Docker", "SQL"]
    assert profile.last_analysis.scoring == ScoringMethod.SKIPPED
    assert profile.last_analysis.fit_score is None
    assert repository.get_profile(profile.resume_id) == profile


def test_handle_payload_rejects_missing_or_blank(processor, sample_payload):
    with pytest.raises(ValidationError):
        processor.handle_payload(None)
    with pytest.raises(ValidationError):
        processor.handle_payload(sample_payload.model_copy(update={"resume_text": "  \n "}))


def test_analyze_with_text_and_job_description(processor, repository, sample_resume_text, sample_job_description):
    response = processor.analyze(AnalyzeRequest(
        resume_text=sample_resume_text,
        job_description=sample_job_description,
        user_id="user-1",
    ))

    assert response.message == "Analysis completed successfully"
    assert response.analysis.scoring == ScoringMethod.HEURISTIC
    assert response.analysis.fit_score == 66.7

    profile = repository.get_profile(response.resume_id)
    assert profile.session_name == "Target Role at Target Company"
    assert profile.user_id == "user-1"

    [analysis] = repository.get_analyses(response.resume_id)
    assert analysis.extraction_method == ExtractionMethod.FALLBACK
    assert analysis.entity_count == response.analysis.entities.total_entities_found


def test_analyze_by_storage_key_reuses_parsed_profile(processor, repository, sample_payload, sample_job_description):
    stored = processor.handle_payload(sample_payload)

    response = processor.analyze(AnalyzeRequest(
        resume_id=sample_payload.resume_id,
        job_description=sample_job_description,
    ))

    assert response.resume_id == stored.resume_id
    updated = repository.get_profile(stored.resume_id)
    assert updated.created_at == stored.created_at
    assert updated.source_key == sample_payload.resume_id
    assert updated.last_analysis.fit_score is not None


def test_analyze_unknown_storage_key_not_found(processor):
    with pytest.raises(ProfileNotFoundError):
        processor.analyze(AnalyzeRequest(resume_id="private/user-1/missing.pdf"))


def test_analyze_without_any_text_is_rejected(processor):
    with pytest.raises(ValidationError) as exc_info:
        processor.analyze(AnalyzeRequest(resume_id="unknown-id"))
    assert "upload a resume first" in str(exc_info.value)


def test_analyze_rejects_malformed_resume_id(processor, sample_resume_text):
    with pytest.raises(ValidationError):
        processor.analyze(AnalyzeRequest(resume_id="bad id!", resume_text=sample_resume_text))


def test_analyze_keeps_caller_resume_id(processor, sample_resume_text):
    response = processor.analyze(AnalyzeRequest(resume_id="my_resume-1", resume_text=sample_resume_text))
    assert response.resume_id == "my_resume-1"


def test_failed_analysis_write_is_partial_failure(heuristic_analyzer, repository, sample_resume_text):
    processor = AnalyzeStageProcessor(heuristic_analyzer, FailingAnalysisRepository(repository))

    with pytest.raises(PartialFailureError) as exc_info:
        processor.analyze(AnalyzeRequest(resume_id="resume-1", resume_text=sample_resume_text))

    assert exc_info.value.resume_id == "resume-1"
    assert isinstance(exc_info.value.cause, IOError)
    assert repository.get_profile("resume-1") is not None


def test_model_backed_analysis_sets_session_from_job(repository, sample_resume_text, person_entities):
    reply = '{"fit_score": 90, "match_reasoning": "Good", "job_title": "Data Engineer", "company": "Initech"}'
    analyzer = ResumeAnalyzer(EntityExtractor(FakeNerClient(person_entities)), FitScoreAnalyzer(FakeModelClient(reply)))
    processor = AnalyzeStageProcessor(analyzer, repository)

    response = processor.analyze(AnalyzeRequest(resume_text=sample_resume_text, job_description="SQL role"))

    profile = repository.get_profile(response.resume_id)
    assert profile.session_name == "Data Engineer at Initech"
    assert profile.job_title == "Data Engineer"
    assert response.analysis.entities.method == ExtractionMethod.PRIMARY


@pytest.mark.parametrize("title,company,expected", [
    ("Engineer", "Acme", "Engineer at Acme"),
    ("Engineer", None, "Engineer"),
    (None, "Acme", "Job Application - Mar 05, 2024"),
    (None, None, "Job Application - Mar 05, 2024"),
])
def test_session_name(title, company, expected):
    result = AnalysisResult(job_title=title, company=company)
    assert session_name(result, datetime(2024, 3, 5, tzinfo=timezone.utc)) == expected


def test_session_name_defaults_to_today():
    assert re.match(r"^Job Application - [A-Z][a-z]{2} \d{2}, \d{4}$", session_name(AnalysisResult()))


@pytest.mark.parametrize("resume_id,valid", [
    (None, True),
    ("", True),
    ("abc-123_X", True),
    ("private/user/abc-cv.pdf", True),
    ("has space", False),
    ("../etc/passwd", False),
])
def test_validate_resume_id(resume_id, valid):
    assert validate_resume_id(resume_id) is valid
