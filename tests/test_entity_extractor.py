import re

import pytest

from resume_pipeline.core.entity_extractor import EntityExtractor
from resume_pipeline.core.exceptions import OperationCancelledError
from resume_pipeline.core.models import ExtractionMethod, NerEntity

from conftest import FakeNerClient

SCENARIO_TEXT = "John Doe\njohn@example.com\n555-123-4567\nSkills: Python, AWS"


def digits(value):
    return re.sub(r"\D", "", value or "")


def test_fallback_scenario():
    """NER failure falls back to the first-line name and local matching"""
    extractor = EntityExtractor(FakeNerClient(error=RuntimeError("service unavailable")))

    entities = extractor.extract(SCENARIO_TEXT)

    assert entities.name == "John Doe"
    assert entities.email == "john@example.com"
    assert entities.phone == "555-123-4567"
    assert entities.skills == ["Python", "AWS"]
    assert entities.method == ExtractionMethod.FALLBACK
    # name + email + phone + two skills
    assert entities.total_entities_found == 5


def test_primary_uses_highest_scoring_person(person_entities):
    ner = FakeNerClient(person_entities + [NerEntity(type="PERSON", text="Jane Roe", score=0.5)])
    entities = EntityExtractor(ner).extract(SCENARIO_TEXT)

    assert entities.method == ExtractionMethod.PRIMARY
    assert entities.name == "John Doe"
    assert entities.email == "john@example.com"
    assert entities.skills == ["Python", "AWS"]


def test_primary_tie_keeps_first_person():
    ner = FakeNerClient([
        NerEntity(type="PERSON", text="First Person", score=0.9),
        NerEntity(type="PERSON", text="Second Person", score=0.9),
    ])
    assert EntityExtractor(ner).extract(SCENARIO_TEXT).name == "First Person"


def test_primary_without_person_leaves_name_unset():
    ner = FakeNerClient([NerEntity(type="ORGANIZATION", text="Acme", score=0.99)])
    entities = EntityExtractor(ner).extract(SCENARIO_TEXT)

    assert entities.method == ExtractionMethod.PRIMARY
    assert entities.name is None
    assert entities.total_entities_found == 4


def test_ner_receives_truncated_text():
    ner = FakeNerClient([])
    EntityExtractor(ner, ner_max_chars=10).extract("x" * 50)
    assert ner.texts == ["x" * 10]


@pytest.mark.parametrize("text", [None, "", "   \n\t"])
def test_blank_input_returns_empty_fallback(text):
    ner = FakeNerClient([])
    entities = EntityExtractor(ner).extract(text)

    assert entities.method == ExtractionMethod.FALLBACK
    assert entities.total_entities_found == 0
    assert ner.texts == []


def test_cancellation_is_not_swallowed():
    extractor = EntityExtractor(FakeNerClient(error=OperationCancelledError("cancelled")))
    with pytest.raises(OperationCancelledError):
        extractor.extract(SCENARIO_TEXT)


def test_no_ner_client_uses_fallback():
    entities = EntityExtractor(None).extract(SCENARIO_TEXT)
    assert entities.method == ExtractionMethod.FALLBACK
    assert entities.name == "John Doe"


@pytest.mark.parametrize("email", [
    "john.doe@example.com",
    "a_b+tag@sub.domain.org",
    "UPPER@EXAMPLE.IO",
])
def test_extract_email(email):
    text = f"Contact\nMail: {email} (preferred)"
    assert EntityExtractor().extract_email(text) == email


@pytest.mark.parametrize("phone", [
    "555-123-4567",
    "555.123.4567",
    "555 123 4567",
    "(555) 123-4567",
    "5551234567",
    "+1-555-123-4567",
])
def test_extract_phone_keeps_digit_sequence(phone):
    found = EntityExtractor().extract_phone(f"Phone: {phone}\nLocation: Remote")
    assert digits(found) == digits(phone)


@pytest.mark.parametrize("text,expected", [
    ("\n\n  Jane Smith  \nEngineer", "Jane Smith"),
    ("jane@example.com\nJane Smith", "Jane Smith"),
    ("https://linkedin.com/in/jane\nJane Smith", "Jane Smith"),
    ("2020 - 2024\nJane Smith", "Jane Smith"),
    ("A" * 60 + "\nJane Smith", "Jane Smith"),
    ("jane@example.com\n2020", None),
])
def test_extract_name_heuristic(text, expected):
    assert EntityExtractor().extract_name(text) == expected


def test_skills_are_case_insensitive_in_list_order():
    skills = EntityExtractor().extract_skills("experience with docker, PYTHON and kubernetes")
    assert skills == ["Python", "Docker", "Kubernetes"]
