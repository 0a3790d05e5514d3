from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Severity = Literal["low", "medium", "high"]

KEYWORD_CATEGORY_NAMES: tuple[str, ...] = ("technical", "soft", "domain", "tools")


class CamelModel(BaseModel):
    """Snake-case attributes in Python, camelCase keys on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FrozenCamelModel(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class KeywordCategories(FrozenCamelModel):
    technical: list[str] = Field(default_factory=list)
    soft: list[str] = Field(default_factory=list)
    domain: list[str] = Field(default_factory=list)
    tools: list[str] = Field(default_factory=list)


class AtsIssue(FrozenCamelModel):
    issue: str
    severity: Severity = "medium"
    fix: str = ""


class RewriteSuggestion(FrozenCamelModel):
    original: str = ""
    suggested: str
    reason: str = ""


class SkillWeights(FrozenCamelModel):
    critical: list[str] = Field(default_factory=list)
    important: list[str] = Field(default_factory=list)
    nice_to_have: list[str] = Field(default_factory=list)


class ImpactItem(FrozenCamelModel):
    bullet: str
    has_impact: bool = False
    suggestion: str | None = None


class ActionVerbItem(FrozenCamelModel):
    weak: str
    strong: str
    context: str = ""


class MustHaveVsNiceToHave(FrozenCamelModel):
    must_have: list[str] = Field(default_factory=list)
    nice_to_have: list[str] = Field(default_factory=list)


class ImprovementPlan(FrozenCamelModel):
    critical: list[str] = Field(default_factory=list)
    medium: list[str] = Field(default_factory=list)
    polish: list[str] = Field(default_factory=list)


class AnalysisResult(FrozenCamelModel):
    score: int = Field(ge=0, le=100)
    score_explanation: str
    missing_keywords: list[str]
    matched_keywords: list[str]
    suggestions: list[str]
    keyword_categories: KeywordCategories
    ats_issues: list[AtsIssue]
    rewrite_suggestions: list[RewriteSuggestion]
    generated_summary: str
    skill_weights: SkillWeights
    experience_gap: str
    seniority_fit: str
    impact_analysis: list[ImpactItem]
    action_verb_analysis: list[ActionVerbItem]
    redundancies: list[str]
    hidden_requirements: list[str]
    must_have_vs_nice_to_have: MustHaveVsNiceToHave
    improvement_plan: ImprovementPlan
    confidence_level: int = Field(ge=0, le=100)
    tailoring_score: int = Field(ge=0, le=100)
    resume_text: str


class SubmittedAnalysis(AnalysisResult):
    analysis_id: str | None = None


class AnalyzeRequest(CamelModel):
    resume_file: str = ""
    resume_file_name: str = Field(default="", max_length=255)
    job_description: str = ""
    job_title: str | None = Field(default=None, max_length=255)


class ErrorResponse(BaseModel):
    error: str


class HighlightRequest(CamelModel):
    text: str = Field(default="", max_length=200000)
    matched_keywords: list[str] = Field(default_factory=list, max_length=500)
    missing_keywords: list[str] = Field(default_factory=list, max_length=500)


class HighlightResponse(CamelModel):
    marked_text: str


class AnalysisRecord(AnalysisResult):
    id: str
    created_at: datetime
    user_id: str | None = None
    resume_filename: str
    job_title: str | None = None
    job_description: str


class HistoryStats(CamelModel):
    total: int
    avg_score: int
    last_analysis: datetime | None = None
