import dataclasses
import json
import sqlite3
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from app.analysis.response_parser import parse_analysis_response  # noqa: E402
from app.history import db as history_db  # noqa: E402

RESUME = "Experienced Python developer with AWS and Docker skills"


def _result(score: int = 72):
    document = {
        "score": score,
        "missingKeywords": ["Kubernetes"],
        "matchedKeywords": ["Python", "AWS"],
        "suggestions": ["Mention Kubernetes"],
        "keywordCategories": {"technical": ["Python", "AWS", "Kubernetes"]},
        "atsIssues": [{"issue": "Two columns", "severity": "low", "fix": "Use one column"}],
    }
    return parse_analysis_response(json.dumps(document), RESUME)


class HistoryDbTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.db_path = Path(self._tmp.name) / "nested" / "history.db"
        self._patch = patch.object(history_db, "_get_db_path", return_value=self.db_path)
        self._patch.start()

    def tearDown(self):
        self._patch.stop()
        self._tmp.cleanup()

    def _insert(self, *, user_id="user-1", score=72, job_title="Backend Engineer"):
        return history_db.insert_analysis(
            result=_result(score),
            resume_filename="resume.txt",
            job_title=job_title,
            job_description="Need Python, AWS, Kubernetes",
            user_id=user_id,
        )

    def test_init_db_creates_tables(self):
        history_db.init_db()
        with sqlite3.connect(self.db_path) as conn:
            tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
        self.assertIn("analysis_history", tables)
        self.assertIn("ai_analysis_runs", tables)

    def test_insert_then_get_round_trips_the_result(self):
        analysis_id = self._insert()
        self.assertTrue(analysis_id)

        record = history_db.get_analysis(analysis_id)
        self.assertIsNotNone(record)
        self.assertEqual(record.id, analysis_id)
        self.assertEqual(record.user_id, "user-1")
        self.assertEqual(record.resume_filename, "resume.txt")
        self.assertEqual(record.job_title, "Backend Engineer")
        self.assertEqual(record.score, 72)
        self.assertEqual(record.matched_keywords, ["Python", "AWS"])
        self.assertEqual(record.keyword_categories.technical, ["Python", "AWS", "Kubernetes"])
        self.assertEqual(record.ats_issues[0].fix, "Use one column")
        self.assertEqual(record.resume_text, RESUME)

    def test_get_unknown_id_returns_none(self):
        self.assertIsNone(history_db.get_analysis("missing"))

    def test_list_is_scoped_to_user_and_newest_first(self):
        with patch.object(history_db, "_utc_now", side_effect=["2026-01-01T00:00:00+00:00", "2026-02-01T00:00:00+00:00"]):
            first = self._insert()
            second = self._insert()
        self._insert(user_id="someone-else")

        records = history_db.list_analyses("user-1")
        self.assertEqual([r.id for r in records], [second, first])
        self.assertEqual(len(history_db.list_analyses("user-1", limit=1)), 1)
        self.assertEqual(history_db.list_analyses("nobody"), [])

    def test_stats(self):
        self._insert(score=60)
        self._insert(score=80)
        stats = history_db.get_user_stats("user-1")
        self.assertEqual(stats.total, 2)
        self.assertEqual(stats.avg_score, 70)
        self.assertIsNotNone(stats.last_analysis)

        empty = history_db.get_user_stats("nobody")
        self.assertEqual(empty.total, 0)
        self.assertEqual(empty.avg_score, 0)
        self.assertIsNone(empty.last_analysis)

    def test_delete(self):
        analysis_id = self._insert()
        self.assertTrue(history_db.delete_analysis(analysis_id))
        self.assertFalse(history_db.delete_analysis(analysis_id))
        self.assertIsNone(history_db.get_analysis(analysis_id))

    def test_ai_runs_are_counted(self):
        history_db.log_ai_analysis_run(run_id="a", model="gpt-4o-mini", status="success", latency_ms=120)
        history_db.log_ai_analysis_run(run_id="b", model="gpt-4o-mini", status="error", error_code="rate_limited")
        history_db.log_ai_analysis_run(run_id="c", model="gpt-4o-mini", status="success", latency_ms=80)
        self.assertEqual(history_db.get_ai_run_counts(), {"success": 2, "error": 1})

    def test_purge_removes_only_expired_rows(self):
        with patch.object(history_db, "_utc_now", return_value="2000-01-01T00:00:00+00:00"):
            old_id = self._insert()
            history_db.log_ai_analysis_run(run_id="old", model="m", status="success")
        fresh_id = self._insert()

        deleted = history_db.purge_old_records()
        self.assertEqual(deleted, {"analysis_history": 1, "ai_analysis_runs": 1})
        self.assertIsNone(history_db.get_analysis(old_id))
        self.assertIsNotNone(history_db.get_analysis(fresh_id))

    def test_disabled_store_is_a_no_op(self):
        disabled = dataclasses.replace(history_db.settings, history_enabled=False)
        with patch.object(history_db, "settings", disabled):
            self.assertIsNone(self._insert())
            self.assertEqual(history_db.list_analyses("user-1"), [])
            self.assertFalse(history_db.delete_analysis("x"))
            self.assertEqual(history_db.get_user_stats("user-1").total, 0)
        self.assertFalse(self.db_path.exists())


if __name__ == "__main__":
    unittest.main()
