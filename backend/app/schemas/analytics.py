from typing import Literal

from pydantic import BaseModel


class CategoryBreakdown(BaseModel):
    training_count: int
    execution_count: int
    behavioral_count: int
    training_pct: str
    execution_pct: str
    behavioral_pct: str


class ScenarioHotspot(BaseModel):
    tag: str
    count: int
    pct: str


class ColleagueImpact(BaseModel):
    user_id: str
    name: str
    total: int
    primary_issue: str


class TypeCount(BaseModel):
    process_type: str
    count: int


class TrendSummary(BaseModel):
    current: int
    previous: int
    diff: int
    direction: Literal["up", "down", "flat"]
    top_types: list[TypeCount]


class AnalyticsResponse(BaseModel):
    team_view: bool
    total_analyzed: int
    sent_total: int
    rejection_rate: str
    categories: CategoryBreakdown
    top_scenarios: list[ScenarioHotspot]
    top_receivers: list[ColleagueImpact]
    trend: TrendSummary
