from __future__ import annotations

import logging

from app.ai.types import Completion, TextGenerator
from app.analysis.errors import (
    AnalysisError,
    EmptyModelOutput,
    QuotaExhausted,
    RateLimited,
    UpstreamFailure,
)
from app.analysis.prompts import build_analysis_prompt

logger = logging.getLogger(__name__)

ANALYSIS_TEMPERATURE = 0.7


def classify_failure(status_code: int | None) -> AnalysisError:
    if status_code == 429:
        return RateLimited()
    if status_code == 402:
        return QuotaExhausted()
    return UpstreamFailure()


def completion_text(completion: Completion) -> str:
    """Return the generated text or raise the error matching the outcome."""
    if not completion.ok:
        raise classify_failure(completion.status_code)
    text = completion.text
    if not isinstance(text, str) or not text.strip():
        raise EmptyModelOutput()
    return text


async def request_analysis(
    client: TextGenerator,
    resume_text: str,
    job_description: str,
    job_title: str | None = None,
) -> str:
    """Ask the generative backend for an analysis; exactly one call, no retries."""
    prompt = build_analysis_prompt(resume_text, job_description, job_title)
    completion = await client.complete(
        prompt.system_prompt,
        prompt.user_prompt,
        ANALYSIS_TEMPERATURE,
    )
    if not completion.ok:
        logger.warning("analysis_upstream_failed status=%s", completion.status_code)
    return completion_text(completion)
