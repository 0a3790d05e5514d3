from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from typing import Any

from app.analysis.errors import AnalysisError, MalformedModelOutput, ModelRefused, SchemaViolation
from app.core.config import settings
from app.schemas.analysis import KEYWORD_CATEGORY_NAMES, AnalysisResult

logger = logging.getLogger(__name__)

_FENCED_BLOCK_RE = re.compile(r"```[A-Za-z]*\s*([\s\S]*?)\s*```")
REFUSAL_PHRASES = ("i'm sorry", "i’m sorry", "cannot", "unable")
REQUIRED_KEYWORD_FIELDS = ("missingKeywords", "matchedKeywords", "suggestions")

DEFAULT_SCORE_EXPLANATION = "Analysis completed."
DEFAULT_EXPERIENCE_GAP = "No experience gap assessment was provided."
DEFAULT_SENIORITY_FIT = "No seniority assessment was provided."
DEFAULT_CONFIDENCE_LEVEL = 75
DEFAULT_TAILORING_SCORE = 50
MAX_OPTIONAL_ITEMS = 25

VALID_SEVERITIES = {"high", "medium", "low"}
SEVERITY_ALIASES = {"critical": "high", "warning": "medium", "minor": "low"}


@dataclass(frozen=True)
class ParseOutcome:
    result: AnalysisResult | None = None
    error: AnalysisError | None = None

    @property
    def ok(self) -> bool:
        return self.result is not None


def _safe_str(value: Any, max_len: int = 2000) -> str:
    if not isinstance(value, str):
        return ""
    text = re.sub(r"\s+", " ", value).strip()
    if len(text) > max_len:
        text = text[:max_len].rstrip()
    return text


def _safe_str_list(value: Any, max_items: int = MAX_OPTIONAL_ITEMS, max_len: int = 500) -> list[str]:
    if not isinstance(value, list):
        return []
    output: list[str] = []
    for item in value:
        text = _safe_str(item, max_len=max_len)
        if text:
            output.append(text)
        if len(output) >= max_items:
            break
    return output


def _clamp_int(value: Any, default: int, min_value: int = 0, max_value: int = 100) -> int:
    if isinstance(value, bool):
        return default
    try:
        parsed = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if not math.isfinite(parsed):
        return default
    return max(min_value, min(max_value, int(round(parsed))))


def _safe_dict_items(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)][: MAX_OPTIONAL_ITEMS * 2]


def _safe_severity(value: Any) -> str:
    severity = _safe_str(value, max_len=16).lower()
    severity = SEVERITY_ALIASES.get(severity, severity)
    return severity if severity in VALID_SEVERITIES else "medium"


def _safe_ats_issues(value: Any) -> list[dict[str, Any]]:
    output: list[dict[str, Any]] = []
    for item in _safe_dict_items(value):
        issue = _safe_str(item.get("issue"), max_len=300)
        if not issue:
            continue
        output.append(
            {
                "issue": issue,
                "severity": _safe_severity(item.get("severity")),
                "fix": _safe_str(item.get("fix"), max_len=500),
            }
        )
        if len(output) >= MAX_OPTIONAL_ITEMS:
            break
    return output


def _safe_rewrites(value: Any) -> list[dict[str, Any]]:
    output: list[dict[str, Any]] = []
    for item in _safe_dict_items(value):
        suggested = _safe_str(item.get("suggested"), max_len=1000)
        if not suggested:
            continue
        output.append(
            {
                "original": _safe_str(item.get("original"), max_len=1000),
                "suggested": suggested,
                "reason": _safe_str(item.get("reason"), max_len=500),
            }
        )
        if len(output) >= MAX_OPTIONAL_ITEMS:
            break
    return output


def _safe_impact_items(value: Any) -> list[dict[str, Any]]:
    output: list[dict[str, Any]] = []
    for item in _safe_dict_items(value):
        bullet = _safe_str(item.get("bullet"), max_len=1000)
        if not bullet:
            continue
        suggestion = _safe_str(item.get("suggestion"), max_len=500)
        output.append(
            {
                "bullet": bullet,
                "hasImpact": item.get("hasImpact") is True,
                "suggestion": suggestion or None,
            }
        )
        if len(output) >= MAX_OPTIONAL_ITEMS:
            break
    return output


def _safe_action_verbs(value: Any) -> list[dict[str, Any]]:
    output: list[dict[str, Any]] = []
    for item in _safe_dict_items(value):
        weak = _safe_str(item.get("weak"), max_len=80)
        strong = _safe_str(item.get("strong"), max_len=80)
        if not weak or not strong:
            continue
        output.append({"weak": weak, "strong": strong, "context": _safe_str(item.get("context"), max_len=500)})
        if len(output) >= MAX_OPTIONAL_ITEMS:
            break
    return output


def _safe_hidden_requirements(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    # The model sometimes answers with {"requirement": "..."} objects instead of strings.
    flattened = [item.get("requirement") if isinstance(item, dict) else item for item in value]
    return _safe_str_list(flattened)


def _safe_grouped_lists(value: Any, keys: tuple[str, ...]) -> dict[str, list[str]]:
    source = value if isinstance(value, dict) else {}
    return {key: _safe_str_list(source.get(key)) for key in keys}


def _safe_keyword_categories(value: Any) -> dict[str, list[str]]:
    source = value if isinstance(value, dict) else {}
    return {name: _safe_str_list(source.get(name), max_items=100, max_len=120) for name in KEYWORD_CATEGORY_NAMES}


def apply_defaults(payload: dict[str, Any]) -> dict[str, Any]:
    """Fill every optional field with a well-formed value.

    Total and idempotent: any input dict yields a complete payload, and
    applying it again returns an equal payload. Required fields are copied
    through untouched apart from clamping ``score`` into 0..100.
    """
    repaired = dict(payload)
    repaired["score"] = _clamp_int(payload.get("score"), default=0)
    repaired["scoreExplanation"] = _safe_str(payload.get("scoreExplanation")) or DEFAULT_SCORE_EXPLANATION
    repaired["keywordCategories"] = _safe_keyword_categories(payload.get("keywordCategories"))
    repaired["atsIssues"] = _safe_ats_issues(payload.get("atsIssues"))
    repaired["rewriteSuggestions"] = _safe_rewrites(payload.get("rewriteSuggestions"))
    repaired["generatedSummary"] = _safe_str(payload.get("generatedSummary"), max_len=3000)
    repaired["skillWeights"] = _safe_grouped_lists(payload.get("skillWeights"), ("critical", "important", "niceToHave"))
    repaired["experienceGap"] = _safe_str(payload.get("experienceGap")) or DEFAULT_EXPERIENCE_GAP
    repaired["seniorityFit"] = _safe_str(payload.get("seniorityFit")) or DEFAULT_SENIORITY_FIT
    repaired["impactAnalysis"] = _safe_impact_items(payload.get("impactAnalysis"))
    repaired["actionVerbAnalysis"] = _safe_action_verbs(payload.get("actionVerbAnalysis"))
    repaired["redundancies"] = _safe_str_list(payload.get("redundancies"))
    repaired["hiddenRequirements"] = _safe_hidden_requirements(payload.get("hiddenRequirements"))
    repaired["mustHaveVsNiceToHave"] = _safe_grouped_lists(
        payload.get("mustHaveVsNiceToHave"), ("mustHave", "niceToHave")
    )
    repaired["improvementPlan"] = _safe_grouped_lists(payload.get("improvementPlan"), ("critical", "medium", "polish"))
    repaired["confidenceLevel"] = _clamp_int(payload.get("confidenceLevel"), default=DEFAULT_CONFIDENCE_LEVEL)
    repaired["tailoringScore"] = _clamp_int(payload.get("tailoringScore"), default=DEFAULT_TAILORING_SCORE)
    return repaired


def extract_json_text(raw_output: str) -> str:
    match = _FENCED_BLOCK_RE.search(raw_output)
    return (match.group(1) if match else raw_output).strip()


def looks_like_refusal(raw_output: str) -> bool:
    lowered = raw_output.lower()
    return any(phrase in lowered for phrase in REFUSAL_PHRASES)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and math.isfinite(value)


def _is_str_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def _schema_error(document: Any) -> SchemaViolation | None:
    if not isinstance(document, dict):
        return SchemaViolation()
    if not _is_number(document.get("score")):
        return SchemaViolation()
    for field in REQUIRED_KEYWORD_FIELDS:
        if not _is_str_list(document.get(field)):
            return SchemaViolation()
    return None


def _log_unparseable(raw_output: str, error: AnalysisError) -> None:
    limit = max(0, settings.log_message_max_chars)
    logger.warning(
        json.dumps(
            {
                "event": "analysis_response_rejected",
                "error_code": error.code,
                "raw_len": len(raw_output),
                "raw_preview": raw_output[:limit],
            }
        )
    )


def evaluate_analysis_response(raw_output: str, resume_text: str) -> ParseOutcome:
    """Parse, validate and repair model output without raising."""
    try:
        document = json.loads(extract_json_text(raw_output))
    except (ValueError, RecursionError):
        # RecursionError: deeply nested arrays exhaust the decoder stack.
        error: AnalysisError = ModelRefused() if looks_like_refusal(raw_output) else MalformedModelOutput()
        _log_unparseable(raw_output, error)
        return ParseOutcome(error=error)

    violation = _schema_error(document)
    if violation is not None:
        _log_unparseable(raw_output, violation)
        return ParseOutcome(error=violation)

    repaired = apply_defaults(document)
    repaired["resumeText"] = resume_text
    return ParseOutcome(result=AnalysisResult.model_validate(repaired))


def parse_analysis_response(raw_output: str, resume_text: str) -> AnalysisResult:
    outcome = evaluate_analysis_response(raw_output, resume_text)
    if outcome.error is not None:
        raise outcome.error
    return outcome.result
