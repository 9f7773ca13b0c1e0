import json
import logging
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import numpy as np

from ..core.models import AnalysisResult

logger = logging.getLogger(__name__)


class QualityMonitor:
    """Tracks which strategy produced each result and how long it took"""

    def __init__(self, log_dir: str = "logs"):
        self.log_dir = Path(log_dir)
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.reset()

    def reset(self):
        self.documents: Dict[str, Dict[str, Any]] = {}
        self.error_files: Dict[str, str] = {}
        self.extraction_methods = Counter()
        self.scoring_methods = Counter()
        self.durations = []
        self.fit_scores = []
        self.entity_counts = []

    @property
    def total_processed(self) -> int:
        return len(self.documents) + len(self.error_files)

    def log_analysis(self, document: str, result: AnalysisResult, duration: float):
        """Record one successfully analyzed document."""
        entities = result.entities
        self.documents[document] = {
            "extraction_method": entities.method.value,
            "scoring": result.scoring.value,
            "entity_count": entities.total_entities_found,
            "fit_score": result.fit_score,
            "duration": duration,
            "timestamp": datetime.now().isoformat(),
        }
        self.extraction_methods[entities.method.value] += 1
        self.scoring_methods[result.scoring.value] += 1
        self.durations.append(duration)
        self.entity_counts.append(entities.total_entities_found)
        if result.fit_score is not None:
            self.fit_scores.append(result.fit_score)

    def log_error(self, document: str, error: str):
        self.error_files[document] = error
        logger.error(f"Error processing {document}: {error}")

    def get_error_files(self) -> set:
        return set(self.error_files)

    def summary(self) -> Dict[str, Any]:
        total = self.total_processed
        succeeded = len(self.documents)
        fallback = self.extraction_methods.get("Fallback", 0)
        return {
            "total_processed": total,
            "successful": succeeded,
            "failed": len(self.error_files),
            "success_rate": succeeded / total * 100 if total else 0.0,
            "fallback_rate": fallback / succeeded * 100 if succeeded else 0.0,
            "extraction_methods": dict(self.extraction_methods),
            "scoring_methods": dict(self.scoring_methods),
            "avg_duration": float(np.mean(self.durations)) if self.durations else 0.0,
            "p95_duration": float(np.percentile(self.durations, 95)) if self.durations else 0.0,
            "avg_entity_count": float(np.mean(self.entity_counts)) if self.entity_counts else 0.0,
            "avg_fit_score": float(np.mean(self.fit_scores)) if self.fit_scores else None,
        }

    def generate_report(self, report_file: Optional[Path] = None) -> Dict[str, Any]:
        """Write the quality report as JSON and return it."""
        report = {
            "timestamp": datetime.now().isoformat(),
            "summary": self.summary(),
            "errors": self.error_files,
            "documents": self.documents,
        }

        report_file = report_file or self.log_dir / f"quality_report_{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
        with open(report_file, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2)

        summary = report["summary"]
        logger.info(f"Quality Report Generated: {report_file}")
        logger.info(f"Total Processed: {summary['total_processed']}")
        logger.info(f"Success Rate: {summary['success_rate']:.2f}%")
        logger.info(f"Average Duration: {summary['avg_duration']:.2f}s")
        return report
