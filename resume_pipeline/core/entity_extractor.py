import logging
import re
from typing import List, Optional

from .cancellation import CancellationToken
from .data import SKILL_KEYWORDS, find_skills
from .interfaces import NerClient
from .models import ExtractedEntities, ExtractionMethod, NerEntity
from .outcome import Outcome, attempt, with_fallback

logger = logging.getLogger(__name__)

PERSON = "PERSON"


class EntityExtractor:
    """Extracts name, contact details and skills from resume text.

    The name comes from an NER service when it is reachable and from a
    first-line heuristic otherwise. Email, phone and skills are always
    matched locally.
    """

    EMAIL_PATTERN = re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b", re.IGNORECASE)
    # +1-555-123-4567, (555) 123-4567, 555.123.4567, 5551234567 ...
    PHONE_PATTERN = re.compile(r"(\+?\d{1,3}[-.\s]?)?\(?\d{3}\)?[-.\s]?\d{3}[-.\s]?\d{4}")

    MAX_NAME_LENGTH = 50

    def __init__(self, ner_client: Optional[NerClient] = None, skill_keywords=SKILL_KEYWORDS,
                 ner_max_chars: int = 5000):
        self.ner_client = ner_client
        self.skill_keywords = tuple(skill_keywords)
        self.ner_max_chars = ner_max_chars

    def extract(self, text: Optional[str], cancel_token: Optional[CancellationToken] = None) -> ExtractedEntities:
        if not text or not text.strip():
            return ExtractedEntities(method=ExtractionMethod.FALLBACK)

        return with_fallback(
            lambda: self._extract_primary(text, cancel_token),
            lambda error: self._extract_fallback(text, error),
        )

    def _extract_primary(self, text: str, cancel_token: Optional[CancellationToken]) -> Outcome[ExtractedEntities]:
        if self.ner_client is None:
            return Outcome.failure(RuntimeError("No NER client configured"))

        logger.info("Attempting entity extraction using the NER service")
        detected = attempt(self.ner_client.detect_entities, text[:self.ner_max_chars], cancel_token)
        if not detected.ok:
            return detected

        return Outcome.success(self._build(
            name=self._select_person(detected.value or []),
            text=text,
            method=ExtractionMethod.PRIMARY,
        ))

    def _extract_fallback(self, text: str, error: BaseException) -> ExtractedEntities:
        logger.warning(f"NER extraction failed, using regex fallback: {error}")
        return self._build(name=self.extract_name(text), text=text, method=ExtractionMethod.FALLBACK)

    def _build(self, name: Optional[str], text: str, method: ExtractionMethod) -> ExtractedEntities:
        return ExtractedEntities(
            name=name,
            email=self.extract_email(text),
            phone=self.extract_phone(text),
            skills=self.extract_skills(text),
            method=method,
        )

    @staticmethod
    def _select_person(entities: List[NerEntity]) -> Optional[str]:
        """Highest-scoring PERSON entity; the first one seen wins a tie."""
        best = None
        for entity in entities:
            if entity.type != PERSON:
                continue
            if best is None or entity.score > best.score:
                best = entity
        return best.text if best else None

    def extract_email(self, text: str) -> Optional[str]:
        match = self.EMAIL_PATTERN.search(text)
        return match.group(0) if match else None

    def extract_phone(self, text: str) -> Optional[str]:
        match = self.PHONE_PATTERN.search(text)
        return match.group(0) if match else None

    def extract_skills(self, text: str) -> List[str]:
        return find_skills(text, self.skill_keywords)

    def extract_name(self, text: str) -> Optional[str]:
        """First short line that does not look like contact details or a date."""
        for line in re.split(r"[\r\n]+", text):
            line = line.strip()
            if not line:
                continue
            if (len(line) < self.MAX_NAME_LENGTH
                    and "@" not in line
                    and "http" not in line
                    and not line[0].isdigit()):
                return line
        return None
