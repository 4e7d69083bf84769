"""Pydantic schemas for the case API.

Insert schemas carry the client-writable columns of each table, update
schemas are their all-optional counterparts, and read schemas are what
both storage backends hand back. Everything crosses the wire in camelCase.
"""
import datetime as dt
from typing import Any, ClassVar, Dict, FrozenSet, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

CaseStatus = Literal["active", "pending", "closed"]
CasePriority = Literal["high", "medium", "low"]
EvidenceStatus = Literal["collected", "in_lab", "processed", "under_review", "archived"]
Reliability = Literal["high", "medium", "low", "under_assessment", "unknown"]
InterviewStatus = Literal["pending", "scheduled", "completed"]
AnalysisType = Literal["case_summary", "timeline", "relationships", "lead_generation"]

ANALYSIS_TYPES: List[str] = ["case_summary", "timeline", "relationships", "lead_generation"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )

    @field_validator("*", mode="after")
    @classmethod
    def naive_utc(cls, value):
        # Timestamps are stored as naive UTC; offsets are folded in on the way in.
        if isinstance(value, dt.datetime) and value.tzinfo is not None:
            return value.astimezone(dt.timezone.utc).replace(tzinfo=None)
        return value

    def to_json(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class PartialModel(CamelModel):
    # Columns that are NOT NULL in the table; an explicit null leaves them unchanged.
    not_null: ClassVar[FrozenSet[str]] = frozenset()

    def changes(self) -> Dict[str, Any]:
        data = self.model_dump(exclude_unset=True)
        return {k: v for k, v in data.items() if not (v is None and k in self.not_null)}


# ---------------------------------------------------------------- users

class UserCreate(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    first_name: str
    last_name: str
    badge_number: Optional[str] = None
    role: str = "detective"


class User(CamelModel):
    id: int
    username: str
    first_name: str
    last_name: str
    badge_number: Optional[str] = None
    role: str = "detective"


# ---------------------------------------------------------------- cases

class CaseCreate(CamelModel):
    case_number: str = Field(min_length=1)
    title: str = Field(min_length=1)
    description: Optional[str] = None
    location: Optional[str] = None
    crime_type: Optional[str] = None
    crime_date: Optional[dt.datetime] = None
    status: CaseStatus = "active"
    priority: Optional[CasePriority] = "medium"
    lead_detective_id: Optional[int] = None


class CaseUpdate(PartialModel):
    not_null: ClassVar[FrozenSet[str]] = frozenset({"case_number", "title", "status"})

    case_number: Optional[str] = Field(default=None, min_length=1)
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    location: Optional[str] = None
    crime_type: Optional[str] = None
    crime_date: Optional[dt.datetime] = None
    status: Optional[CaseStatus] = None
    priority: Optional[CasePriority] = None
    lead_detective_id: Optional[int] = None


class Case(CaseCreate):
    id: int
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


# ---------------------------------------------------------------- evidence

class EvidenceCreate(CamelModel):
    case_id: int
    evidence_number: str = Field(min_length=1)
    type: str = Field(min_length=1)
    description: Optional[str] = None
    location: Optional[str] = None
    status: Optional[EvidenceStatus] = "collected"
    collected_by: Optional[str] = None
    collected_at: Optional[dt.datetime] = None
    notes: Optional[str] = None


class EvidenceUpdate(PartialModel):
    not_null: ClassVar[FrozenSet[str]] = frozenset({"case_id", "evidence_number", "type"})

    case_id: Optional[int] = None
    evidence_number: Optional[str] = Field(default=None, min_length=1)
    type: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    location: Optional[str] = None
    status: Optional[EvidenceStatus] = None
    collected_by: Optional[str] = None
    collected_at: Optional[dt.datetime] = None
    notes: Optional[str] = None


class Evidence(EvidenceCreate):
    id: int
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None


# ---------------------------------------------------------------- witnesses

class WitnessCreate(CamelModel):
    case_id: int
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    relationship: Optional[str] = None
    reliability: Optional[Reliability] = "unknown"
    interview_status: Optional[InterviewStatus] = "pending"
    notes: Optional[str] = None


class WitnessUpdate(PartialModel):
    not_null: ClassVar[FrozenSet[str]] = frozenset({"case_id", "first_name", "last_name"})

    case_id: Optional[int] = None
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    contact_phone: Optional[str] = None
    contact_email: Optional[str] = None
    relationship: Optional[str] = None
    reliability: Optional[Reliability] = None
    interview_status: Optional[InterviewStatus] = None
    notes: Optional[str] = None


class Witness(WitnessCreate):
    id: int
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


# ---------------------------------------------------------------- activity log

class ActivityLogCreate(CamelModel):
    case_id: int
    user_id: Optional[int] = None
    activity_type: str = Field(min_length=1)
    description: str = Field(min_length=1)


class ActivityLog(ActivityLogCreate):
    id: int
    created_at: Optional[dt.datetime] = None


# ---------------------------------------------------------------- AI analyses

class AiAnalysisCreate(CamelModel):
    case_id: int
    analysis_type: AnalysisType
    content: Dict[str, Any]


class AiAnalysis(AiAnalysisCreate):
    id: int
    created_at: Optional[dt.datetime] = None


class AnalyzeRequest(CamelModel):
    analysis_type: Literal["case_summary", "timeline", "relationships", "lead_generation", "all"] = "all"


class CaseSummaryAnalysis(CamelModel):
    summary: str
    recommendations: List[str] = []


class CriticalWindow(CamelModel):
    time_start: str
    time_end: str
    description: str


class TimelineAnalysis(CamelModel):
    critical_windows: List[CriticalWindow] = []


class KeyRelationship(CamelModel):
    name: str
    relationship: str
    conflict_type: str


class RelationshipAnalysis(CamelModel):
    key_relationships: List[KeyRelationship] = []


class LeadGenerationAnalysis(CamelModel):
    leads: List[str] = []


ANALYSIS_MODELS = {
    "case_summary": CaseSummaryAnalysis,
    "timeline": TimelineAnalysis,
    "relationships": RelationshipAnalysis,
    "lead_generation": LeadGenerationAnalysis,
}
