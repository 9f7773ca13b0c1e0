import logging.config
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

# Chatty client libraries; their INFO output drowns the pipeline's own
QUIET_LOGGERS = ['botocore', 'boto3', 'urllib3', 'httpx', 'PIL']


def build_logging_config(level: str = 'INFO', log_file: Optional[Path] = None) -> dict:
    handlers = {
        'console': {
            'level': level,
            'formatter': 'standard',
            'class': 'logging.StreamHandler',
            'stream': 'ext://sys.stdout',
        },
    }
    if log_file:
        handlers['file'] = {
            'level': level,
            'formatter': 'standard',
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': str(log_file),
            'maxBytes': 10 * 1024 * 1024,
            'backupCount': 5,
            'encoding': 'utf-8',
        }

    loggers = {name: {'level': 'WARNING'} for name in QUIET_LOGGERS}
    loggers['resume_pipeline'] = {'level': level}

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {'standard': {'format': LOG_FORMAT}},
        'handlers': handlers,
        'root': {'handlers': list(handlers), 'level': level},
        'loggers': loggers,
    }


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None):
    """Configure logging for the application

    Lambda and the API server log to stdout only; the batch CLI also passes
    a file under LOG_DIR.
    """
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    logging.config.dictConfig(build_logging_config((level or 'INFO').upper(), log_file))
