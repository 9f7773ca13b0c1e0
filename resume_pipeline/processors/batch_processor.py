import json
import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Dict, Generator, List, Optional

from tqdm import tqdm

from ..core.cancellation import CancellationToken, ensure_token
from ..core.exceptions import OperationCancelledError, PipelineError
from ..core.models import DocumentIdentity
from ..core.resume_analyzer import ResumeAnalyzer
from ..utils.quality_monitor import QualityMonitor
from .file_processor import FileProcessingService

logger = logging.getLogger(__name__)


class BatchProcessor:
    """Runs extraction and analysis over local resume files one at a time"""

    def __init__(self, file_service: FileProcessingService,
                 analyzer: ResumeAnalyzer,
                 quality_monitor: Optional[QualityMonitor] = None,
                 job_description: Optional[str] = None):
        self.file_service = file_service
        self.analyzer = analyzer
        self.quality_monitor = quality_monitor
        self.job_description = job_description

    def _process_single(self, file_path: Path, token: CancellationToken) -> Optional[Dict]:
        start_time = time.time()
        identity = DocumentIdentity(container_id=str(file_path.parent), key=file_path.name)
        try:
            processed = self.file_service.process(identity, token)
            if not processed.success:
                raise PipelineError(processed.error_message or "No text extracted")
            result = self.analyzer.analyze_cv(processed.extracted_text, self.job_description, token)
        except OperationCancelledError:
            raise
        except PipelineError as e:
            logger.error(f"Error processing {file_path}: {e}")
            if self.quality_monitor:
                self.quality_monitor.log_error(str(file_path), str(e))
            return None

        duration = time.time() - start_time
        if self.quality_monitor:
            self.quality_monitor.log_analysis(str(file_path), result, duration)
        return {
            "file": str(file_path),
            "file_type": processed.file_type.value,
            "processed_at": processed.processed_at.isoformat(),
            "duration": duration,
            "analysis": result.to_dict(),
        }

    def process_generator(self, file_paths: List[Path],
                          cancel_token: Optional[CancellationToken] = None) -> Generator[Optional[Dict], None, None]:
        """Yield one result per file; None marks a failed file."""
        token = ensure_token(cancel_token)
        for file_path in tqdm(file_paths, desc="Processing resumes"):
            token.raise_if_cancelled()
            yield self._process_single(Path(file_path), token)

    def process_to_file(self, file_paths: List[Path], output_file: Path,
                        cancel_token: Optional[CancellationToken] = None) -> Dict:
        """Process files and stream the results into a JSON array file"""
        start_time = datetime.now()
        total_files = len(file_paths)
        processed = 0
        failed = 0

        output_file = Path(output_file)
        if not output_file.suffix:
            output_file = output_file.with_suffix(".json")
        output_file.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(output_file, "w", encoding="utf-8") as f:
                f.write("[\n")
                first = True
                for result in self.process_generator(file_paths, cancel_token):
                    if result:
                        if not first:
                            f.write(",\n")
                        json.dump(result, f, indent=2)
                        first = False
                        processed += 1
                    else:
                        failed += 1

                    if (processed + failed) % 100 == 0:
                        logger.info(
                            f"Progress: {processed + failed}/{total_files} "
                            f"({(processed + failed) / total_files * 100:.1f}%)"
                        )
                f.write("\n]")
        except OSError as e:
            logger.error(f"Error writing to output file {output_file}: {e}")
            raise

        duration = (datetime.now() - start_time).total_seconds()
        metrics = {
            "total_files": total_files,
            "processed": processed,
            "failed": failed,
            "success_rate": processed / total_files * 100 if total_files > 0 else 0,
            "processing_time": duration,
            "files_per_second": total_files / duration if duration > 0 else 0,
            "output_file": str(output_file),
        }
        logger.info(f"Processing complete: {metrics}")
        return metrics
