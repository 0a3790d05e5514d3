from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import JSONResponse

from app.analysis.highlight import highlight_keywords
from app.core.security import check_api_key
from app.history import db as history_db
from app.schemas.analysis import AnalysisRecord, HighlightResponse, HistoryStats

router = APIRouter()

NOT_FOUND_MESSAGE = "Analysis not found"


def _auth(x_api_key: str | None = Header(default=None, alias="X-API-Key")):
    check_api_key(x_api_key)


def _current_user(x_user_id: str | None = Header(default=None, alias="X-User-Id")) -> str:
    return (x_user_id or "").strip()


def _not_found() -> JSONResponse:
    return JSONResponse(status_code=404, content={"error": NOT_FOUND_MESSAGE})


@router.get("/history", response_model=list[AnalysisRecord])
def list_history(
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str = Depends(_current_user),
    _: None = Depends(_auth),
):
    if not user_id:
        return []
    return history_db.list_analyses(user_id, limit=limit)


@router.get("/history/stats", response_model=HistoryStats)
def history_stats(
    user_id: str = Depends(_current_user),
    _: None = Depends(_auth),
):
    if not user_id:
        return HistoryStats(total=0, avg_score=0, last_analysis=None)
    return history_db.get_user_stats(user_id)


@router.get("/history/{analysis_id}", response_model=AnalysisRecord)
def get_history_item(analysis_id: str, _: None = Depends(_auth)):
    record = history_db.get_analysis(analysis_id)
    if record is None:
        return _not_found()
    return record


@router.get("/history/{analysis_id}/highlight", response_model=HighlightResponse)
def get_history_highlight(analysis_id: str, _: None = Depends(_auth)):
    record = history_db.get_analysis(analysis_id)
    if record is None:
        return _not_found()
    return HighlightResponse(
        marked_text=highlight_keywords(record.resume_text, record.matched_keywords, record.missing_keywords)
    )


@router.delete("/history/{analysis_id}")
def delete_history_item(analysis_id: str, _: None = Depends(_auth)):
    if not history_db.delete_analysis(analysis_id):
        return _not_found()
    return {"deleted": True, "id": analysis_id}
