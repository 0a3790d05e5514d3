from __future__ import annotations

import hashlib
import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Callable

from app.ai.config import load_ai_config
from app.ai.factory import get_ai_client
from app.ai.types import TextGenerator
from app.analysis.errors import (
    AnalysisError,
    InputTooLarge,
    MissingFields,
    PersistenceFailure,
    ServiceNotConfigured,
)
from app.analysis.orchestrator import request_analysis
from app.analysis.response_parser import evaluate_analysis_response
from app.core.config import settings
from app.history.db import insert_analysis, log_ai_analysis_run
from app.parsing.parse import parse_upload
from app.schemas.analysis import AnalysisResult, AnalyzeRequest, ErrorResponse, SubmittedAnalysis

logger = logging.getLogger("app.analysis")

InsertRecord = Callable[..., str | None]


@dataclass(frozen=True)
class AnalysisFailure:
    error: AnalysisError

    @property
    def status_code(self) -> int:
        return self.error.status_code

    @property
    def message(self) -> str:
        return str(self.error)

    def to_response(self) -> ErrorResponse:
        return ErrorResponse(error=self.message)


def _short_hash(value: str | None) -> str:
    normalized = (value or "").strip()
    if not normalized:
        return ""
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()[:12]


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


def _model() -> str:
    return load_ai_config().model


def _log_ai_run(*, run_id: str, status: str, latency_ms: int, error_code: str | None = None) -> None:
    try:
        log_ai_analysis_run(
            run_id=run_id,
            model=_model(),
            status=status,
            error_code=error_code,
            latency_ms=latency_ms,
        )
    except Exception:  # pragma: no cover - telemetry must not break an analysis
        logger.debug("ai_run_logging_failed", exc_info=True)


def _validate_request(request: AnalyzeRequest) -> None:
    if not request.resume_file.strip() or not request.resume_file_name.strip() or not request.job_description.strip():
        raise MissingFields()
    # base64 inflates the payload by a third.
    if len(request.resume_file) * 3 // 4 > settings.max_upload_bytes:
        raise InputTooLarge()
    if len(request.job_description) > settings.max_job_description_chars:
        raise InputTooLarge()


def _default_client() -> TextGenerator:
    try:
        return get_ai_client()
    except (RuntimeError, ValueError) as exc:
        logger.error("analysis_client_unavailable: %s", exc)
        raise ServiceNotConfigured() from exc


async def _generate(client: TextGenerator, resume_text: str, request: AnalyzeRequest, job_title: str | None) -> str:
    run_id = uuid.uuid4().hex
    started = time.perf_counter()
    try:
        raw_output = await request_analysis(client, resume_text, request.job_description, job_title)
    except AnalysisError as exc:
        _log_ai_run(run_id=run_id, status="error", error_code=exc.code, latency_ms=_elapsed_ms(started))
        raise
    _log_ai_run(run_id=run_id, status="success", latency_ms=_elapsed_ms(started))
    return raw_output


def _persist(
    result: AnalysisResult,
    request: AnalyzeRequest,
    *,
    job_title: str,
    user_id: str | None,
    insert_record: InsertRecord,
) -> str | None:
    try:
        return insert_record(
            result=result,
            resume_filename=request.resume_file_name,
            job_title=job_title,
            job_description=request.job_description,
            user_id=user_id,
        )
    except Exception as exc:
        logger.exception("analysis_persist_failed: %s", exc)
        raise PersistenceFailure() from exc


async def submit_analysis(
    request: AnalyzeRequest,
    *,
    client: TextGenerator | None = None,
    user_id: str | None = None,
    insert_record: InsertRecord = insert_analysis,
) -> SubmittedAnalysis | AnalysisFailure:
    """Run decode, extract, sanitize, generate and parse, then persist once.

    Returns the validated analysis, or an AnalysisFailure carrying the
    user-facing message. Nothing is stored unless every stage succeeded.
    """
    started = time.perf_counter()
    try:
        _validate_request(request)
        document = parse_upload(request.resume_file, request.resume_file_name)
        job_title = (request.job_title or "").strip() or None

        logger.info(
            json.dumps(
                {
                    "event": "analysis_request",
                    "doc_id": document.doc_id,
                    "source_type": document.source_type,
                    "resume_len": len(document.text),
                    "job_description_len": len(request.job_description),
                    "job_title_hash": _short_hash(job_title),
                    "user_hash": _short_hash(user_id),
                }
            )
        )

        raw_output = await _generate(client or _default_client(), document.text, request, job_title)
        outcome = evaluate_analysis_response(raw_output, document.text)
        if outcome.error is not None:
            raise outcome.error

        result = outcome.result
        analysis_id = _persist(
            result,
            request,
            job_title=job_title or settings.default_job_title,
            user_id=user_id,
            insert_record=insert_record,
        )
    except AnalysisError as exc:
        logger.warning(
            json.dumps(
                {
                    "event": "analysis_failed",
                    "error_code": exc.code,
                    "duration_ms": _elapsed_ms(started),
                }
            )
        )
        return AnalysisFailure(exc)
    except Exception as exc:
        logger.exception(
            json.dumps(
                {
                    "event": "analysis_error",
                    "error": str(exc),
                    "duration_ms": _elapsed_ms(started),
                }
            )
        )
        return AnalysisFailure(AnalysisError())

    logger.info(
        json.dumps(
            {
                "event": "analysis_complete",
                "analysis_id": analysis_id,
                "score": result.score,
                "matched": len(result.matched_keywords),
                "missing": len(result.missing_keywords),
                "duration_ms": _elapsed_ms(started),
            }
        )
    )
    return SubmittedAnalysis.model_validate({**result.model_dump(), "analysis_id": analysis_id})
