from typing import Dict, List, Literal, Optional, Union

from pydantic import Field

from .base import CamelModel

# Marker for a biomarker whose instrument/data is not available. Never a zero.
SENTINEL = "--"

SubScoreValue = Union[int, float, str]


class HealthScores(CamelModel):
    """Five top-level scores in [0, 100]; None means no data"""
    wellbeing: Optional[int] = Field(None, ge=0, le=100)
    activity: Optional[int] = Field(None, ge=0, le=100)
    sleep: Optional[int] = Field(None, ge=0, le=100)
    mental_wellbeing: Optional[int] = Field(None, ge=0, le=100)
    readiness: Optional[int] = Field(None, ge=0, le=100)


class SubScore(CamelModel):
    name: str
    value: SubScoreValue
    unit: str = ""

    @property
    def is_available(self) -> bool:
        return self.value != SENTINEL


class SubScores(CamelModel):
    activity: List[SubScore] = []
    sleep: List[SubScore] = []
    mental_wellbeing: List[SubScore] = []
    readiness: List[SubScore] = []
    wellbeing: List[SubScore] = []


class Archetype(CamelModel):
    id: str
    profile_id: str
    external_id: str
    name: str
    value: str
    data_type: Literal["ordinal", "categorical"]
    ordinality: Optional[int] = Field(None, ge=0, le=3)
    periodicity: Literal["weekly", "monthly", "quarterly"] = "monthly"
    start_date_time: str
    end_date_time: str
    created_at_utc: str
    description: str = ""
    requires_wearable: bool = False


class ArchetypesByCategory(CamelModel):
    activity: List[Archetype] = []
    sleep: List[Archetype] = []
    exercise: List[Archetype] = []
    wellness: List[Archetype] = []


class ProfileArchetypes(CamelModel):
    profile_id: str
    external_id: str
    editable_id: str
    archetypes: List[Archetype]
    # Independently seeded data-quality signal, not len(archetypes) / 14
    archetype_completeness: int
    has_wearable_data: bool
    archetypes_by_category: ArchetypesByCategory
    data_quality: Literal["high", "medium", "low"]


class Demographics(CamelModel):
    age: Optional[int] = None
    gender: Optional[str] = None


class Profile(CamelModel):
    """Canonical profile record; every upstream shape is converted into this once"""
    profile_id: str
    external_id: str
    editable_id: str = ""
    account_id: Optional[str] = None
    device_type: Optional[str] = None
    is_sample_profile: bool = False
    created_at_utc: Optional[str] = None
    department: Optional[str] = None
    scores: HealthScores = Field(default_factory=HealthScores)
    sub_scores: Optional[SubScores] = None
    # Archetypes as reported by Sahha for live profiles; None means synthesize them
    archetypes: Optional[List[Archetype]] = None
    demographics: Optional[Demographics] = None
    source: Literal["live", "demo", "webhook"] = "demo"


class ProfileListResponse(CamelModel):
    success: bool = True
    source: Literal["live", "demo"]
    count: int
    profiles: List[Profile]
    timestamp: str
    error: Optional[str] = None


class EditableIdUpdate(CamelModel):
    editable_id: str


class ScoreAverages(CamelModel):
    wellbeing: Optional[float] = None
    activity: Optional[float] = None
    sleep: Optional[float] = None
    mental_wellbeing: Optional[float] = None
    readiness: Optional[float] = None


class DepartmentBreakdown(CamelModel):
    department: str
    employee_count: int
    average_scores: ScoreAverages


class RiskIndicator(CamelModel):
    type: str
    severity: Literal["low", "medium", "high", "critical"]
    affected_employees: int
    description: str


class DepartmentArchetypeAnalysis(CamelModel):
    department: str
    profile_count: int
    average_completeness: int
    wearable_data_count: int
    archetype_distribution: Dict[str, Dict[str, int]]


class OrganizationMetrics(CamelModel):
    total_employees: int
    average_scores: ScoreAverages
    department_breakdown: List[DepartmentBreakdown]
    risk_indicators: List[RiskIndicator]
    archetype_distribution: Dict[str, Dict[str, int]]
    department_archetypes: List[DepartmentArchetypeAnalysis]
    last_updated: str
