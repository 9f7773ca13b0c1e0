import logging
import uuid
from pathlib import PurePosixPath

import uvicorn
from fastapi import BackgroundTasks, FastAPI, File, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ..core.exceptions import (
    DocumentNotFoundError,
    FileSizeExceededError,
    InvocationFailureError,
    PipelineError,
    ProfileNotFoundError,
    StageRejectedError,
    TextExtractionError,
    UnsupportedFileTypeError,
    ValidationError,
)
from ..core.models import AnalyzeRequest, InvocationPayload

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = [
    (ValidationError, 400),
    (ProfileNotFoundError, 404),
    (DocumentNotFoundError, 404),
    (FileSizeExceededError, 413),
    (UnsupportedFileTypeError, 415),
    (TextExtractionError, 422),
    (InvocationFailureError, 502),
    (StageRejectedError, 502),
]


def status_for(error: PipelineError) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return status
    return 500


def upload_key(filename: str) -> str:
    name = PurePosixPath(filename or "upload").name
    return f"{uuid.uuid4()}-{name}"


def create_app(services) -> FastAPI:
    app = FastAPI(title="Resume Pipeline API")
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PipelineError)
    async def pipeline_error_handler(request: Request, exc: PipelineError):
        status = status_for(exc)
        if status >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
        return JSONResponse(
            status_code=status,
            content=exc.to_dict(),
        )

    @app.get("/")
    async def root():
        return {"status": "online", "service": "resume-pipeline"}

    @app.post("/parse")
    def parse_resume(file: UploadFile = File(...)):
        key = upload_key(file.filename)
        services.storage.write(services.upload_container, key, file.file.read())
        payload = services.parse_processor.process(services.upload_container, key)
        return payload.to_dict()

    @app.post("/analyze")
    def analyze_resume(request: AnalyzeRequest):
        return services.analyze_processor.analyze(request).to_dict()

    def run_payload(payload: InvocationPayload):
        try:
            services.analyze_processor.handle_payload(payload)
        except PipelineError as e:
            logger.error(f"Background analysis failed. CorrelationId: {payload.correlation_id}, Error: {e}")

    @app.post("/stages/analyzer", status_code=202)
    def receive_payload(payload: InvocationPayload, background_tasks: BackgroundTasks):
        if not payload.resume_text.strip():
            raise ValidationError("Payload has no resume text", correlation_id=payload.correlation_id)
        background_tasks.add_task(run_payload, payload)
        return {"status": "accepted", "correlationId": payload.correlation_id}

    @app.get("/resumes/{resume_id:path}")
    def get_resume(resume_id: str):
        return services.analyze_processor.get_profile(resume_id).to_dict()

    return app


def build_app() -> FastAPI:
    from config.logging_config import setup_logging
    from config.settings import settings

    from ..factory import build_services

    setup_logging()
    return create_app(build_services(settings))


if __name__ == "__main__":
    uvicorn.run("resume_pipeline.api.server:build_app", factory=True, host="0.0.0.0", port=8000)
