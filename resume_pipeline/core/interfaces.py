"""Capabilities the pipeline consumes from external collaborators."""

from typing import List, Optional, Protocol

from .cancellation import CancellationToken
from .models import (
    AnalysisRecord,
    InvocationPayload,
    ModelPrompt,
    NerEntity,
    OcrBlock,
    ProfileRecord,
)


class DocumentStorage(Protocol):
    def read(self, container_id: str, key: str, cancel_token: Optional[CancellationToken] = None) -> bytes:
        """Raises DocumentNotFoundError or StorageError."""
        ...

    def size(self, container_id: str, key: str, cancel_token: Optional[CancellationToken] = None) -> int:
        ...


class OcrClient(Protocol):
    def detect_text(self, container_id: str, key: str,
                    cancel_token: Optional[CancellationToken] = None) -> List[OcrBlock]:
        """Raises OcrServiceError; ``transient`` tells whether a retry may help."""
        ...


class NerClient(Protocol):
    def detect_entities(self, text: str, cancel_token: Optional[CancellationToken] = None) -> List[NerEntity]:
        ...


class GenerativeModelClient(Protocol):
    def invoke(self, prompt: ModelPrompt, cancel_token: Optional[CancellationToken] = None) -> str:
        """Return the model's raw text response."""
        ...


class StageSubmitter(Protocol):
    def submit(self, payload: InvocationPayload, cancel_token: Optional[CancellationToken] = None) -> bool:
        """Return True when the receiving stage accepted the payload."""
        ...


class ProfileRepository(Protocol):
    def save_profile(self, profile: ProfileRecord) -> None:
        ...

    def get_profile(self, resume_id: str) -> Optional[ProfileRecord]:
        ...

    def get_profile_by_source_key(self, source_key: str) -> Optional[ProfileRecord]:
        ...

    def save_analysis(self, analysis: AnalysisRecord) -> None:
        ...
