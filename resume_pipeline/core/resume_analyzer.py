import logging
import time
from typing import Optional

from .cancellation import CancellationToken, ensure_token
from .entity_extractor import EntityExtractor
from .fit_analyzer import FitScoreAnalyzer
from .models import AnalysisResult

logger = logging.getLogger(__name__)


class ResumeAnalyzer:
    """Entity extraction followed by fit scoring for one resume"""

    def __init__(self, entity_extractor: EntityExtractor, fit_analyzer: FitScoreAnalyzer):
        self.entity_extractor = entity_extractor
        self.fit_analyzer = fit_analyzer

    def validate_input(self, cv_text: Optional[str]) -> bool:
        return bool(cv_text and cv_text.strip())

    def analyze_cv(self, cv_text: str, job_description: Optional[str] = None,
                   cancel_token: Optional[CancellationToken] = None) -> AnalysisResult:
        token = ensure_token(cancel_token)
        start_time = time.time()

        token.raise_if_cancelled()
        entities = self.entity_extractor.extract(cv_text, token)
        logger.info(
            f"Entities extracted. Method: {entities.method.value}, "
            f"TotalEntities: {entities.total_entities_found}"
        )

        token.raise_if_cancelled()
        result = self.fit_analyzer.analyze(entities, cv_text, job_description, token)
        logger.info(
            f"Resume analysis completed. Scoring: {result.scoring.value}, FitScore: {result.fit_score}, "
            f"Duration: {(time.time() - start_time) * 1000:.0f}ms"
        )
        return result
