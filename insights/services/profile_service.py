import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from insights.core.config import settings
from insights.crud.department import DepartmentCRUD
from insights.schemas.profile import Archetype, HealthScores, Profile, ProfileArchetypes
from insights.services.profile_store import ProfileStore, SetAssignments, SetError, SetProfiles
from insights.services.sahha_client import SahhaAPIError, SahhaClient
from insights.synthesis import build_profile_archetypes, create_demo_profiles, generate_sub_scores
from insights.synthesis.demo import synthesize_demographics
from insights.synthesis.mappings import ARCHETYPE_DEFINITIONS, ORDINAL
from insights.utils.timezone import isoformat_now

logger = logging.getLogger(__name__)

ClientFactory = Callable[[], SahhaClient]

PERIODICITIES = ("weekly", "monthly", "quarterly")


def _default_client_factory() -> SahhaClient:
    return SahhaClient(settings.SAHHA_CLIENT_ID, settings.SAHHA_CLIENT_SECRET)


def archetype_from_sahha(raw: Dict[str, Any], profile_id: str, external_id: str) -> Optional[Archetype]:
    """Convert one Sahha archetype entry; entries without a name or value are skipped."""
    name, value = raw.get("name"), raw.get("value")
    if not name or value is None:
        return None
    definition = ARCHETYPE_DEFINITIONS.get(name)
    ordinality = raw.get("ordinality")
    if not isinstance(ordinality, int) or not 0 <= ordinality <= 3:
        ordinality = None
    periodicity = str(raw.get("periodicity") or "").lower()
    stamp = raw.get("createdAtUtc") or isoformat_now()
    return Archetype(
        id=str(raw.get("id") or f"{profile_id}-{name}"),
        profile_id=profile_id,
        external_id=external_id,
        name=name,
        value=str(value),
        data_type=ORDINAL if raw.get("dataType") == ORDINAL else "categorical",
        ordinality=ordinality,
        periodicity=periodicity if periodicity in PERIODICITIES else "monthly",
        start_date_time=raw.get("startDateTime") or stamp,
        end_date_time=raw.get("endDateTime") or stamp,
        created_at_utc=stamp,
        description=definition.description if definition else "",
        requires_wearable=definition.requires_wearable if definition else False,
    )


def profile_from_sahha(
    raw: Dict[str, Any],
    scores: Optional[HealthScores] = None,
    archetypes: Optional[List[Dict[str, Any]]] = None,
) -> Profile:
    """Convert a Sahha profile search item into the canonical Profile."""
    profile_id = raw.get("profileId") or raw.get("externalId") or ""
    external_id = raw.get("externalId") or profile_id
    converted = None
    if archetypes:
        converted = [
            a for a in (archetype_from_sahha(item, profile_id, external_id) for item in archetypes) if a is not None
        ]
    return Profile(
        profile_id=profile_id,
        external_id=external_id,
        editable_id=raw.get("externalId") or "",
        account_id=raw.get("accountId"),
        device_type=raw.get("deviceType"),
        is_sample_profile=bool(raw.get("isSampleProfile", False)),
        created_at_utc=raw.get("createdAtUtc"),
        scores=scores or HealthScores(),
        # Biomarker detail is not part of the search response
        sub_scores=generate_sub_scores(profile_id),
        demographics=synthesize_demographics(profile_id),
        archetypes=converted or None,
        source="live",
    )


class ProfileService:
    """Loads profiles into the store, live from Sahha when configured, otherwise synthesized."""

    def __init__(self, store: ProfileStore, client_factory: Optional[ClientFactory] = None):
        self.store = store
        self.client_factory = client_factory

    @property
    def live_enabled(self) -> bool:
        return self.client_factory is not None or settings.has_sahha_credentials

    def _fetch_live(self) -> List[Profile]:
        factory = self.client_factory or _default_client_factory
        with factory() as client:
            raw_profiles = client.search_profiles()
            profiles = []
            for index, raw in enumerate(raw_profiles):
                scores, archetypes = None, None
                external_id = raw.get("externalId")
                if index < settings.SAHHA_SCORE_PROFILE_LIMIT and external_id:
                    try:
                        scores = client.fetch_health_scores(external_id)
                    except SahhaAPIError as e:
                        logger.warning(f"[ProfileService] Score fetch failed for {external_id}: {e}")
                    try:
                        archetypes = client.fetch_archetypes(external_id)
                    except SahhaAPIError as e:
                        logger.warning(f"[ProfileService] Archetype fetch failed for {external_id}: {e}")
                profiles.append(profile_from_sahha(raw, scores, archetypes))
            return profiles

    def load_profiles(self, db: Optional[Session] = None, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Refresh the store and report where the profiles came from."""
        source = "demo"
        error = None
        profiles: List[Profile] = []

        if self.live_enabled:
            try:
                profiles = self._fetch_live()
                source = "live"
                logger.info(f"[ProfileService] Loaded {len(profiles)} live profiles")
            except (SahhaAPIError, ValueError) as e:
                # ValueError covers score values that are not numbers
                error = str(e)
                logger.warning(f"[ProfileService] Live fetch failed, serving demo data: {e}")
        else:
            logger.info("[ProfileService] No Sahha credentials configured, serving demo data")

        if source == "demo":
            profiles = create_demo_profiles(settings.DEMO_PROFILE_COUNT, now=now)

        self.store.dispatch(SetProfiles(tuple(profiles), source=source))
        self.store.dispatch(SetError(error))
        if db is not None:
            assignments = {**self.store.state.assignments, **DepartmentCRUD.get_assignments(db)}
            self.store.dispatch(SetAssignments(assignments))

        return {"source": source, "profiles": self.store.profiles(), "error": error}

    def ensure_loaded(self, db: Optional[Session] = None) -> List[Profile]:
        if not self.store.state.profiles:
            self.load_profiles(db)
        return self.store.profiles()

    def profile_archetypes(self, profile: Profile, now: Optional[datetime] = None) -> ProfileArchetypes:
        return build_profile_archetypes(
            profile.profile_id,
            profile.external_id,
            profile.scores,
            editable_id=profile.editable_id,
            now=now,
            archetypes=profile.archetypes,
        )

    def all_profile_archetypes(self, profiles: List[Profile], now: Optional[datetime] = None) -> List[ProfileArchetypes]:
        return [self.profile_archetypes(p, now=now) for p in profiles]
