from setuptools import setup, find_packages

setup(
    name="resume_pipeline",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*", "scripts"]),
    install_requires=[
        "spacy>=3.0.0",
        "transformers>=4.0.0",
        "torch>=1.8.0",
        "python-docx>=0.8.11",
        "pytesseract>=0.3.8",
        "pdf2image>=1.16.0",
        "Pillow>=9.0.0",
        "opencv-python-headless>=4.5.0",
        "numpy>=1.19.5",
        "boto3>=1.26.0",
        "botocore>=1.29.0",
        "httpx>=0.24.0",
        "tenacity>=8.0.0",
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        "python-dotenv>=0.19.0",
        "fastapi>=0.100.0",
        "uvicorn>=0.22.0",
        "python-multipart>=0.0.6",
        "click>=8.0.0",
        "tqdm>=4.60.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    python_requires=">=3.8",
)
