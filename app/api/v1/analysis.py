from fastapi import APIRouter, Header, Request
from fastapi.responses import JSONResponse

from app.analysis.highlight import highlight_keywords
from app.core.rate_limit import rate_limit
from app.core.security import check_api_key
from app.schemas.analysis import (
    AnalyzeRequest,
    ErrorResponse,
    HighlightRequest,
    HighlightResponse,
    SubmittedAnalysis,
)
from app.services.analysis_service import AnalysisFailure, submit_analysis

router = APIRouter()


@router.post(
    "/analyze",
    response_model=SubmittedAnalysis,
    responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
)
@rate_limit()
async def analyze_resume(
    request: Request,
    payload: AnalyzeRequest,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
    x_user_id: str | None = Header(default=None, alias="X-User-Id"),
):
    _ = request
    check_api_key(x_api_key)
    outcome = await submit_analysis(payload, user_id=(x_user_id or "").strip() or None)
    if isinstance(outcome, AnalysisFailure):
        return JSONResponse(status_code=outcome.status_code, content=outcome.to_response().model_dump())
    return outcome


@router.post("/highlight", response_model=HighlightResponse)
def highlight(
    payload: HighlightRequest,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key)
    return HighlightResponse(
        marked_text=highlight_keywords(payload.text, payload.matched_keywords, payload.missing_keywords)
    )
