import logging
import threading
from typing import Dict, List, Optional

from ..core.models import AnalysisRecord, ProfileRecord

logger = logging.getLogger(__name__)


class InMemoryProfileRepository:
    """Process-local profile store for the HTTP service and tests"""

    def __init__(self):
        self._lock = threading.Lock()
        self.profiles: Dict[str, ProfileRecord] = {}
        self.analyses: Dict[str, List[AnalysisRecord]] = {}

    def save_profile(self, profile: ProfileRecord) -> None:
        with self._lock:
            self.profiles[profile.resume_id] = profile
        logger.debug(f"Saved profile {profile.resume_id}")

    def get_profile(self, resume_id: str) -> Optional[ProfileRecord]:
        with self._lock:
            return self.profiles.get(resume_id)

    def get_profile_by_source_key(self, source_key: str) -> Optional[ProfileRecord]:
        with self._lock:
            matches = [p for p in self.profiles.values() if p.source_key == source_key]
        if not matches:
            return None
        return max(matches, key=lambda p: p.created_at)

    def save_analysis(self, analysis: AnalysisRecord) -> None:
        with self._lock:
            self.analyses.setdefault(analysis.resume_id, []).append(analysis)

    def get_analyses(self, resume_id: str) -> List[AnalysisRecord]:
        with self._lock:
            return list(self.analyses.get(resume_id, []))
