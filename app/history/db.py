from __future__ import annotations

import json
import sqlite3
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from app.core.config import settings
from app.schemas.analysis import AnalysisRecord, AnalysisResult, HistoryStats

JSON_COLUMNS = (
    "missing_keywords",
    "matched_keywords",
    "suggestions",
    "keyword_categories",
    "ats_issues",
    "rewrite_suggestions",
    "skill_weights",
    "impact_analysis",
    "action_verb_analysis",
    "redundancies",
    "hidden_requirements",
    "must_have_vs_nice_to_have",
    "improvement_plan",
)
TEXT_COLUMNS = (
    "score_explanation",
    "generated_summary",
    "experience_gap",
    "seniority_fit",
    "resume_text",
)
INT_COLUMNS = ("score", "confidence_level", "tailoring_score")
RESULT_COLUMNS = INT_COLUMNS + TEXT_COLUMNS + JSON_COLUMNS


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_db_path() -> Path:
    return Path(settings.history_db_path)


def _ensure_schema(conn: sqlite3.Connection) -> None:
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS analysis_history (
            id TEXT PRIMARY KEY,
            created_at TEXT NOT NULL,
            user_id TEXT,
            resume_filename TEXT NOT NULL,
            job_title TEXT,
            job_description TEXT NOT NULL,
            score INTEGER NOT NULL,
            confidence_level INTEGER,
            tailoring_score INTEGER,
            score_explanation TEXT,
            generated_summary TEXT,
            experience_gap TEXT,
            seniority_fit TEXT,
            resume_text TEXT,
            missing_keywords TEXT,
            matched_keywords TEXT,
            suggestions TEXT,
            keyword_categories TEXT,
            ats_issues TEXT,
            rewrite_suggestions TEXT,
            skill_weights TEXT,
            impact_analysis TEXT,
            action_verb_analysis TEXT,
            redundancies TEXT,
            hidden_requirements TEXT,
            must_have_vs_nice_to_have TEXT,
            improvement_plan TEXT
        )
        """
    )
    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_analysis_history_user_created
        ON analysis_history (user_id, created_at)
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS ai_analysis_runs (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            created_at TEXT NOT NULL,
            run_id TEXT NOT NULL,
            model TEXT NOT NULL,
            status TEXT NOT NULL,
            error_code TEXT,
            latency_ms INTEGER
        )
        """
    )
    conn.execute(
        """
        CREATE INDEX IF NOT EXISTS idx_ai_analysis_runs_created_at
        ON ai_analysis_runs (created_at)
        """
    )


def _connect() -> sqlite3.Connection:
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path)
    _ensure_schema(conn)
    return conn


def init_db() -> None:
    if not settings.history_enabled:
        return
    with _connect() as conn:
        conn.commit()
    purge_old_records()


def insert_analysis(
    *,
    result: AnalysisResult,
    resume_filename: str,
    job_title: str | None,
    job_description: str,
    user_id: str | None,
) -> str | None:
    """Persist one analysis as a single insert and return its id."""
    if not settings.history_enabled:
        return None
    analysis_id = uuid.uuid4().hex
    payload = result.model_dump(mode="json")
    values: list[Any] = [analysis_id, _utc_now(), user_id, resume_filename, job_title, job_description]
    for column in RESULT_COLUMNS:
        value = payload[column]
        values.append(json.dumps(value, ensure_ascii=False) if column in JSON_COLUMNS else value)

    columns = ("id", "created_at", "user_id", "resume_filename", "job_title", "job_description") + RESULT_COLUMNS
    placeholders = ", ".join("?" for _ in columns)
    with _connect() as conn:
        conn.execute(
            f"INSERT INTO analysis_history ({', '.join(columns)}) VALUES ({placeholders})",
            values,
        )
        conn.commit()
    return analysis_id


def _row_to_dict(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def _row_to_record(data: dict[str, Any]) -> AnalysisRecord:
    for column in JSON_COLUMNS:
        raw = data.get(column)
        data[column] = json.loads(raw) if raw else None
    data["keyword_categories"] = data.get("keyword_categories") or {}
    for column in ("skill_weights", "must_have_vs_nice_to_have", "improvement_plan"):
        data[column] = data.get(column) or {}
    for column in JSON_COLUMNS:
        if data[column] is None:
            data[column] = []
    for column in TEXT_COLUMNS:
        data[column] = data.get(column) or ""
    return AnalysisRecord.model_validate(data)


def get_analysis(analysis_id: str) -> AnalysisRecord | None:
    if not settings.history_enabled:
        return None
    with _connect() as conn:
        cur = conn.execute("SELECT * FROM analysis_history WHERE id = ?", (analysis_id,))
        row = cur.fetchone()
        if not row:
            return None
        return _row_to_record(_row_to_dict(cur, row))


def list_analyses(user_id: str, limit: int = 50) -> list[AnalysisRecord]:
    if not settings.history_enabled:
        return []
    with _connect() as conn:
        cur = conn.execute(
            """
            SELECT *
            FROM analysis_history
            WHERE user_id = ?
            ORDER BY created_at DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        rows = cur.fetchall()
        return [_row_to_record(_row_to_dict(cur, row)) for row in rows]


def delete_analysis(analysis_id: str) -> bool:
    if not settings.history_enabled:
        return False
    with _connect() as conn:
        cur = conn.execute("DELETE FROM analysis_history WHERE id = ?", (analysis_id,))
        conn.commit()
        return bool(cur.rowcount)


def get_user_stats(user_id: str) -> HistoryStats:
    if not settings.history_enabled:
        return HistoryStats(total=0, avg_score=0, last_analysis=None)
    with _connect() as conn:
        cur = conn.execute(
            """
            SELECT COUNT(*), AVG(score), MAX(created_at)
            FROM analysis_history
            WHERE user_id = ?
            """,
            (user_id,),
        )
        total, avg_score, last_analysis = cur.fetchone()
    return HistoryStats(
        total=int(total or 0),
        avg_score=int(round(avg_score)) if avg_score is not None else 0,
        last_analysis=last_analysis,
    )


def log_ai_analysis_run(
    *,
    run_id: str,
    model: str,
    status: str,
    error_code: str | None = None,
    latency_ms: int | None = None,
) -> None:
    if not settings.history_enabled:
        return
    with _connect() as conn:
        conn.execute(
            """
            INSERT INTO ai_analysis_runs (
                created_at, run_id, model, status, error_code, latency_ms
            ) VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                _utc_now(),
                run_id,
                model,
                status,
                error_code,
                latency_ms,
            ),
        )
        conn.commit()


def get_ai_run_counts() -> dict[str, int]:
    if not settings.history_enabled:
        return {}
    with _connect() as conn:
        cur = conn.execute("SELECT status, COUNT(*) FROM ai_analysis_runs GROUP BY status")
        return {status: int(count) for status, count in cur.fetchall()}


def purge_old_records() -> dict[str, int]:
    if not settings.history_enabled:
        return {"analysis_history": 0, "ai_analysis_runs": 0}

    retention = max(1, int(settings.history_retention_days))
    cutoff = f"-{retention} days"
    deleted = {"analysis_history": 0, "ai_analysis_runs": 0}
    with _connect() as conn:
        cur = conn.execute(
            "DELETE FROM analysis_history WHERE datetime(created_at) < datetime('now', ?)",
            (cutoff,),
        )
        deleted["analysis_history"] = int(cur.rowcount or 0)

        cur = conn.execute(
            "DELETE FROM ai_analysis_runs WHERE datetime(created_at) < datetime('now', ?)",
            (cutoff,),
        )
        deleted["ai_analysis_runs"] = int(cur.rowcount or 0)
        conn.commit()

    return deleted
