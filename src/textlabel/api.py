"""
HTTP boundary for the labeling service.

Endpoints:
- POST /api/label   label one text, returns the validated result
- GET  /api/tasks   supported tasks, their labels and the prompting modes
- GET  /health      liveness check

Every failure is returned as ``{"error": "<message>"}``.
"""

import logging
from typing import Any, Dict

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .errors import LabelingError
from .labeler import Labeler
from .schema import LabelRequest, LabelResult, Mode
from .tasks import TASKS

logger = logging.getLogger(__name__)

app = FastAPI(title="textlabel", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def get_labeler() -> Labeler:
    return Labeler()


@app.exception_handler(LabelingError)
async def labeling_error_handler(request: Request, exc: LabelingError) -> JSONResponse:
    logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s", request.url.path)
    return JSONResponse(
        status_code=500,
        content={"error": str(exc) or "Failed to process labeling request"},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Unparseable or wrongly typed bodies are treated like missing fields
    logger.warning("Rejected request body on %s: %s", request.url.path, exc.errors())
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request body: expected JSON with string fields task, mode, text"},
    )


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok"}


@app.get("/api/tasks")
def list_tasks() -> Dict[str, Any]:
    return {
        "tasks": [
            {
                "name": task.value,
                "display_name": spec.display_name,
                "cardinality": spec.cardinality.value,
                "labels": list(spec.labels),
            }
            for task, spec in TASKS.items()
        ],
        "modes": [mode.value for mode in Mode],
    }


@app.post("/api/label", response_model=LabelResult)
def label(body: LabelRequest, labeler: Labeler = Depends(get_labeler)) -> LabelResult:
    return labeler.label(body.task, body.mode, body.text)
