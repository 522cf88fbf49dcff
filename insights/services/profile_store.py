"""
Profile store: the loaded profiles plus the user's department assignments and
editable ids.

State is an immutable snapshot. Every change goes through ``reduce(state, action)``,
a pure function, and ``ProfileStore`` only serializes dispatches and swaps the
snapshot. The store is created per application and reached via a FastAPI
dependency, never through a module global.
"""

import logging
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple, Union

from insights.schemas.profile import Profile
from insights.utils.timezone import isoformat_now

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfileState:
    profiles: Tuple[Profile, ...] = ()
    assignments: Dict[str, str] = field(default_factory=dict)
    editable_ids: Dict[str, str] = field(default_factory=dict)
    source: str = "demo"
    error: Optional[str] = None
    last_updated: Optional[str] = None


# Actions

@dataclass(frozen=True)
class SetProfiles:
    profiles: Tuple[Profile, ...]
    source: str = "demo"


@dataclass(frozen=True)
class UpdateProfile:
    profile_id: str
    updates: Dict[str, Any]


@dataclass(frozen=True)
class SetAssignments:
    assignments: Dict[str, str]


@dataclass(frozen=True)
class UpdateAssignment:
    profile_id: str
    department_id: str


@dataclass(frozen=True)
class SetEditableIds:
    editable_ids: Dict[str, str]


@dataclass(frozen=True)
class UpdateEditableId:
    profile_id: str
    editable_id: str


@dataclass(frozen=True)
class SetError:
    error: Optional[str]


@dataclass(frozen=True)
class ClearData:
    pass


Action = Union[
    SetProfiles,
    UpdateProfile,
    SetAssignments,
    UpdateAssignment,
    SetEditableIds,
    UpdateEditableId,
    SetError,
    ClearData,
]


def reduce(state: ProfileState, action: Action) -> ProfileState:
    """Return the state after ``action``; ``state`` itself is never modified."""
    if isinstance(action, SetProfiles):
        return replace(
            state,
            profiles=tuple(action.profiles),
            source=action.source,
            error=None,
            last_updated=isoformat_now(),
        )

    if isinstance(action, UpdateProfile):
        profiles = tuple(
            p.model_copy(update=action.updates) if p.profile_id == action.profile_id else p
            for p in state.profiles
        )
        return replace(state, profiles=profiles)

    if isinstance(action, SetAssignments):
        return replace(state, assignments=dict(action.assignments))

    if isinstance(action, UpdateAssignment):
        return replace(state, assignments={**state.assignments, action.profile_id: action.department_id})

    if isinstance(action, SetEditableIds):
        return replace(state, editable_ids=dict(action.editable_ids))

    if isinstance(action, UpdateEditableId):
        return replace(state, editable_ids={**state.editable_ids, action.profile_id: action.editable_id})

    if isinstance(action, SetError):
        return replace(state, error=action.error)

    if isinstance(action, ClearData):
        return ProfileState()

    raise TypeError(f"Unknown profile store action: {type(action).__name__}")


def resolved_profiles(state: ProfileState) -> List[Profile]:
    """Profiles with the user's department assignments and editable ids applied."""
    resolved = []
    for profile in state.profiles:
        updates: Dict[str, Any] = {}
        if profile.profile_id in state.assignments:
            updates["department"] = state.assignments[profile.profile_id]
        if profile.profile_id in state.editable_ids:
            updates["editable_id"] = state.editable_ids[profile.profile_id]
        resolved.append(profile.model_copy(update=updates) if updates else profile)
    return resolved


class ProfileStore:
    def __init__(self, state: Optional[ProfileState] = None):
        self._state = state or ProfileState()
        self._lock = threading.Lock()

    @property
    def state(self) -> ProfileState:
        return self._state

    def dispatch(self, action: Action) -> ProfileState:
        with self._lock:
            self._state = reduce(self._state, action)
        logger.debug(f"[ProfileStore] {type(action).__name__} applied")
        return self._state

    def profiles(self) -> List[Profile]:
        return resolved_profiles(self._state)

    def get_profile(self, profile_id: str) -> Optional[Profile]:
        for profile in self.profiles():
            if profile.profile_id == profile_id:
                return profile
        return None
