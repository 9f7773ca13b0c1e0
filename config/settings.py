from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pathlib import Path
import os

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Backend: "local" (filesystem, Tesseract, spaCy/transformers, HTTP) or "aws"
    BACKEND: str = "local"

    # Paths
    BASE_DIR: Path = Path(__file__).parent.parent
    INPUT_DIR: Path = BASE_DIR / "data" / "input"
    OUTPUT_DIR: Path = BASE_DIR / "data" / "output"
    LOG_DIR: Path = BASE_DIR / "data" / "logs"
    UPLOAD_DIR: Path = BASE_DIR / "data" / "uploads"

    # AWS
    AWS_REGION: Optional[str] = None
    DOCUMENT_BUCKET: Optional[str] = None
    ANALYZER_FUNCTION_NAME: str = "AnalyzeResumeFunction"
    BEDROCK_MODEL_ID: str = "anthropic.claude-3-sonnet-20240229-v1:0"
    BEDROCK_MAX_TOKENS: int = 4000
    BEDROCK_TEMPERATURE: float = 0.1

    # Local services
    ANALYZER_URL: str = "http://localhost:8000"
    HANDOFF_TIMEOUT: float = 10.0
    NER_ENGINE: str = "spacy"
    SPACY_MODEL: str = "en_core_web_trf"
    NER_MODEL: str = "dslim/bert-base-NER"
    USE_GPU: bool = False

    # OCR Settings
    TESSERACT_PATH: Optional[str] = os.environ.get('TESSERACT_PATH')
    OCR_LANGUAGE: str = "eng"
    OCR_CONFIG: str = "--oem 3 --psm 6"
    OCR_DPI: int = 300
    OCR_PREPROCESSING: bool = True

    # Pipeline limits
    MAX_FILE_SIZE_MB: int = 10
    NER_MAX_CHARS: int = 5000
    CV_PROMPT_CHARS: int = 5000
    JD_PROMPT_CHARS: int = 3000

    # Retry policies (seconds)
    OCR_MAX_RETRIES: int = 2
    OCR_BASE_DELAY: float = 1.0
    HANDOFF_MAX_RETRIES: int = 2
    HANDOFF_BASE_DELAY: float = 1.0

    @property
    def max_file_size_bytes(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024

settings = Settings()
