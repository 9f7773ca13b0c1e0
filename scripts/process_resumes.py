#!/usr/bin/env python3
"""
Run extraction and analysis over every resume in a directory
Usage: python process_resumes.py --input-dir data/input --output-dir data/output
"""

import click
from pathlib import Path
import json
from datetime import datetime
import logging
import sys

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from resume_pipeline.factory import build_local_services
from resume_pipeline.processors.batch_processor import BatchProcessor
from resume_pipeline.utils.quality_monitor import QualityMonitor
from config.logging_config import setup_logging
from config.settings import settings

logger = logging.getLogger(__name__)

@click.command()
@click.option('--input-dir', default=str(settings.INPUT_DIR), help='Input directory with resumes')
@click.option('--output-dir', default=str(settings.OUTPUT_DIR), help='Output directory for JSON')
@click.option('--job-description', type=click.Path(exists=True, dir_okay=False),
              help='Text file with a job description to score every resume against')
@click.option('--log-level', default='INFO', help='Log level for the pipeline loggers')
def main(input_dir: str,
         output_dir: str,
         job_description: str,
         log_level: str):
    """Process all resumes in the input directory"""
    setup_logging(log_level, settings.LOG_DIR / 'process_resumes.log')

    start_time = datetime.now()
    logger.info(f"Starting resume processing at {start_time}")

    input_path = Path(input_dir)
    output_path = Path(output_dir)
    output_path.mkdir(exist_ok=True, parents=True)

    resume_files = []
    for ext in ['.pdf', '.docx']:
        resume_files.extend(input_path.glob(f'**/*{ext}'))
    resume_files = sorted(resume_files)
    logger.info(f"Found {len(resume_files)} resume files")

    if not resume_files:
        logger.error("No resume files found!")
        return

    jd_text = Path(job_description).read_text(encoding='utf-8') if job_description else None

    services = build_local_services(settings)
    monitor = QualityMonitor(log_dir=str(settings.LOG_DIR))
    processor = BatchProcessor(
        services.file_service,
        services.analyzer,
        quality_monitor=monitor,
        job_description=jd_text,
    )

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    output_file = output_path / f"resumes_{timestamp}.json"
    metrics = processor.process_to_file(resume_files, output_file)
    report = monitor.generate_report(output_path / f"quality_report_{timestamp}.json")

    summary = dict(metrics, timestamp=timestamp, quality=report["summary"])
    summary_file = output_path / f"processing_summary_{timestamp}.json"
    with open(summary_file, 'w', encoding='utf-8') as f:
        json.dump(summary, f, indent=2)

    click.echo(f"Processed {metrics['processed']}/{metrics['total_files']} resumes -> {output_file}")
    logger.info("Processing complete!")

if __name__ == "__main__":
    main()
