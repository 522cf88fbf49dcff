from .profile import (
    SENTINEL,
    HealthScores,
    SubScore,
    SubScores,
    Archetype,
    ArchetypesByCategory,
    ProfileArchetypes,
    Demographics,
    Profile,
    ProfileListResponse,
    OrganizationMetrics,
)
from .department import Department, DEPARTMENT_NAMES, department_name
from .webhook import RawProfile, WebhookPayload, WebhookAck, WebhookProfilesResponse
