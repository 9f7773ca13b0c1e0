#!/usr/bin/env python3
"""
Create the data directories and download the local NER models
"""

import subprocess
import sys
from pathlib import Path
import logging

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from transformers import AutoModelForTokenClassification, AutoTokenizer
import spacy
import pytesseract

from config.logging_config import setup_logging
from config.settings import settings

logger = logging.getLogger(__name__)

def create_directories():
    """Create necessary directories"""
    for directory in [settings.INPUT_DIR, settings.OUTPUT_DIR, settings.LOG_DIR, settings.UPLOAD_DIR]:
        directory.mkdir(parents=True, exist_ok=True)
        logger.info(f"Created directory: {directory}")

def download_spacy_model():
    """Download spaCy models"""
    for model in [settings.SPACY_MODEL, "en_core_web_sm"]:
        try:
            logger.info(f"Downloading spaCy model {model}...")
            subprocess.run([sys.executable, "-m", "spacy", "download", model], check=True)
            logger.info(f"{model} downloaded successfully")
        except subprocess.CalledProcessError as e:
            logger.error(f"Error downloading spaCy model {model}: {e}")
            sys.exit(1)

def download_huggingface_model():
    """Download the Hugging Face NER model"""
    model = settings.NER_MODEL
    try:
        logger.info(f"Downloading {model}...")
        AutoModelForTokenClassification.from_pretrained(model)
        AutoTokenizer.from_pretrained(model)
        logger.info(f"{model} downloaded successfully")
    except OSError as e:
        logger.error(f"Error downloading {model}: {e}")
        sys.exit(1)

def verify_installation():
    """Verify all required components are installed"""
    try:
        spacy.load(settings.SPACY_MODEL)
        logger.info("SpaCy model loaded successfully")

        if settings.TESSERACT_PATH:
            pytesseract.pytesseract.tesseract_cmd = settings.TESSERACT_PATH
        logger.info(f"Tesseract OCR {pytesseract.get_tesseract_version()} is available")
    except (OSError, pytesseract.TesseractNotFoundError) as e:
        logger.error(f"Verification failed: {e}")
        sys.exit(1)

def main():
    """Main setup function"""
    setup_logging()
    logger.info("Starting environment setup...")

    create_directories()
    download_spacy_model()
    download_huggingface_model()
    verify_installation()

    logger.info("Environment setup completed successfully!")

if __name__ == "__main__":
    main()
