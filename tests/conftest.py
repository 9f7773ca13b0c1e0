import io
import pytest
from datetime import datetime, timezone

from docx import Document

from resume_pipeline.core.entity_extractor import EntityExtractor
from resume_pipeline.core.exceptions import DocumentNotFoundError
from resume_pipeline.core.fit_analyzer import FitScoreAnalyzer
from resume_pipeline.core.models import InvocationPayload, NerEntity, OcrBlock
from resume_pipeline.core.resume_analyzer import ResumeAnalyzer
from resume_pipeline.core.retry import RetryPolicy
from resume_pipeline.api.profile_store import InMemoryProfileRepository


class FakeStorage:
    """In-memory DocumentStorage keyed by (container, key)"""

    def __init__(self, documents=None):
        self.documents = dict(documents or {})
        self.reads = []

    def write(self, container_id, key, data):
        self.documents[(container_id, key)] = data
        return f"{container_id}/{key}"

    def read(self, container_id, key, cancel_token=None):
        self.reads.append((container_id, key))
        if (container_id, key) not in self.documents:
            raise DocumentNotFoundError(f"Document not found: {container_id}/{key}")
        return self.documents[(container_id, key)]

    def size(self, container_id, key, cancel_token=None):
        return len(self.read(container_id, key))


class FakeOcrClient:
    """Returns queued results in order; exceptions in the queue are raised"""

    def __init__(self, *results):
        self.results = list(results)
        self.calls = 0

    def detect_text(self, container_id, key, cancel_token=None):
        self.calls += 1
        result = self.results.pop(0) if len(self.results) > 1 else self.results[0]
        if isinstance(result, BaseException):
            raise result
        return result


class FakeNerClient:
    def __init__(self, entities=None, error=None):
        self.entities = entities or []
        self.error = error
        self.texts = []

    def detect_entities(self, text, cancel_token=None):
        self.texts.append(text)
        if self.error:
            raise self.error
        return self.entities


class FakeModelClient:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.prompts = []

    def invoke(self, prompt, cancel_token=None):
        self.prompts.append(prompt)
        if self.error:
            raise self.error
        return self.reply


class FakeSubmitter:
    """Answers with queued acceptance flags; the last one repeats"""

    def __init__(self, *accepted):
        self.accepted = list(accepted) or [True]
        self.payloads = []

    def submit(self, payload, cancel_token=None):
        self.payloads.append(payload)
        result = self.accepted.pop(0) if len(self.accepted) > 1 else self.accepted[0]
        if isinstance(result, BaseException):
            raise result
        return result


def make_docx(*paragraphs, table_rows=None) -> bytes:
    """Build a DOCX file in memory"""
    document = Document()
    for paragraph in paragraphs:
        document.add_paragraph(paragraph)
    if table_rows:
        table = document.add_table(rows=len(table_rows), cols=len(table_rows[0]))
        for r, row in enumerate(table_rows):
            for c, value in enumerate(row):
                table.cell(r, c).text = value
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def line(text, top=None):
    return OcrBlock(block_type="LINE", text=text, vertical_position=top)


@pytest.fixture
def no_wait_policy():
    """Two retries without any backoff delay"""
    return RetryPolicy(max_retries=2, delay_fn=lambda attempt: 0.0)


@pytest.fixture
def sample_resume_text():
    """Fixture to provide sample resume text"""
    return (
        "John Doe\n"
        "Software Engineer\n"
        "john.doe@example.com\n"
        "(555) 123-4567\n"
        "\n"
        "Skills:\n"
        "Python, Docker, AWS, SQL\n"
    )


@pytest.fixture
def sample_job_description():
    return "We are hiring a backend engineer with Python, Kubernetes and AWS experience."


@pytest.fixture
def person_entities():
    return [
        NerEntity(type="ORGANIZATION", text="Acme", score=0.99),
        NerEntity(type="PERSON", text="John Doe", score=0.98),
    ]


@pytest.fixture
def repository():
    return InMemoryProfileRepository()


@pytest.fixture
def heuristic_analyzer():
    """ResumeAnalyzer whose NER and model are both unavailable"""
    return ResumeAnalyzer(
        EntityExtractor(FakeNerClient(error=RuntimeError("ner down"))),
        FitScoreAnalyzer(FakeModelClient(error=RuntimeError("model down"))),
    )


@pytest.fixture
def sample_payload(sample_resume_text):
    return InvocationPayload(
        correlation_id="corr-1",
        resume_id="private/user-42/abc-resume.pdf",
        resume_text=sample_resume_text,
        source_container="uploads",
        source_key="private/user-42/abc-resume.pdf",
        file_type="Pdf",
        extracted_at=datetime(2024, 3, 20, 10, 0, tzinfo=timezone.utc),
        user_id="user-42",
    )
