from typing import Any, Dict, List, Optional

from pydantic import ConfigDict, Field, model_validator

from .base import CamelModel

BATCH_EVENT = "batch.scores"
SINGLE_PROFILE_EVENTS = ("score.updated", "archetype.calculated", "profile.created")


class RawProfile(CamelModel):
    """A profile as Sahha pushes it; unknown fields are kept verbatim"""
    model_config = ConfigDict(extra="allow")

    external_id: str = Field(..., min_length=1)
    profile_id: Optional[str] = None
    account_id: Optional[str] = None


class WebhookData(CamelModel):
    model_config = ConfigDict(extra="allow")

    profiles: Optional[List[RawProfile]] = None
    external_id: Optional[str] = None
    profile_id: Optional[str] = None
    scores: Optional[Dict[str, Any]] = None
    archetypes: Optional[Any] = None


class WebhookPayload(CamelModel):
    event: str = Field(..., min_length=1)
    timestamp: Optional[str] = None
    data: WebhookData = Field(default_factory=WebhookData)

    @model_validator(mode="after")
    def _check_event_shape(self) -> "WebhookPayload":
        if self.event in SINGLE_PROFILE_EVENTS:
            if not self.data.external_id:
                raise ValueError(f"{self.event} payload requires data.externalId")
        elif self.data.profiles is None:
            raise ValueError("Payload requires data.profiles array")
        return self

    @property
    def is_batch(self) -> bool:
        return self.event not in SINGLE_PROFILE_EVENTS


class WebhookAck(CamelModel):
    success: bool = True
    message: str
    event: Optional[str] = None
    profiles_processed: int = 0


class WebhookProfilesResponse(CamelModel):
    success: bool = True
    count: int
    profiles: List[Dict[str, Any]]
    last_updated: Optional[str] = None
    demo_mode: bool = False


# Sahha Integration Events: one flat record per delivery, named by X-Event-Type
INTEGRATION_EVENT_SUFFIX = "IntegrationEvent"
SCORE_CREATED = "ScoreCreatedIntegrationEvent"
BIOMARKER_CREATED = "BiomarkerCreatedIntegrationEvent"
ARCHETYPE_CREATED = "ArchetypeCreatedIntegrationEvent"
DATA_LOG_RECEIVED = "DataLogReceivedIntegrationEvent"

INTEGRATION_EVENT_KINDS = {
    SCORE_CREATED: "score",
    BIOMARKER_CREATED: "biomarker",
    ARCHETYPE_CREATED: "archetype",
    DATA_LOG_RECEIVED: "datalog",
}


def is_integration_event(event_type: Optional[str]) -> bool:
    return bool(event_type) and INTEGRATION_EVENT_SUFFIX in event_type


class IntegrationEvent(CamelModel):
    """Flat Integration Event body; a nested ``data`` object is unwrapped"""
    model_config = ConfigDict(extra="allow")

    event_type: Optional[str] = None
    external_id: Optional[str] = None
    profile_id: Optional[str] = None
    account_id: Optional[str] = None
    created_at_utc: Optional[str] = None
    received_at_utc: Optional[str] = None
    version: Optional[Any] = None

    # ScoreCreated
    type: Optional[str] = None
    score: Optional[float] = None
    state: Optional[str] = None
    score_date_time: Optional[str] = None
    data_sources: Optional[List[Any]] = None
    factors: Optional[Any] = None

    # BiomarkerCreated
    category: Optional[str] = None
    value: Optional[Any] = None
    unit: Optional[str] = None
    value_type: Optional[str] = None
    periodicity: Optional[str] = None
    aggregation: Optional[str] = None
    start_date_time: Optional[str] = None
    end_date_time: Optional[str] = None

    # ArchetypeCreated
    name: Optional[str] = None
    data_type: Optional[str] = None
    ordinality: Optional[int] = None

    # DataLogReceived
    log_type: Optional[str] = None
    data_logs: Optional[List[Dict[str, Any]]] = None

    @model_validator(mode="before")
    @classmethod
    def _unwrap_data(cls, value: Any) -> Any:
        if isinstance(value, dict) and isinstance(value.get("data"), dict):
            return {"eventType": value.get("eventType"), **value["data"]}
        return value

    def kind(self, event_type: Optional[str] = None) -> Optional[str]:
        """score / biomarker / archetype / datalog, from the event type or else the body's shape."""
        event_type = event_type or self.event_type
        if event_type in INTEGRATION_EVENT_KINDS:
            return INTEGRATION_EVENT_KINDS[event_type]
        if self.type and self.score is not None:
            return "score"
        if self.category and self.type and self.value is not None:
            return "biomarker"
        if self.name and self.data_type:
            return "archetype"
        if self.log_type and self.data_logs:
            return "datalog"
        return None

    @property
    def timestamp(self) -> Optional[str]:
        return self.created_at_utc or self.received_at_utc
