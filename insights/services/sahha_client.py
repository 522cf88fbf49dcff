"""
Sahha REST client.

Authenticates with the account client credentials and reads profiles, scores and
archetypes. Uses httpx; the transport can be injected so tests never hit the
network.
"""

import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional

import httpx

from insights.core.config import settings
from insights.schemas.profile import HealthScores
from insights.utils.timezone import now_utc

logger = logging.getLogger(__name__)

SCORE_TYPES = ("wellbeing", "activity", "sleep", "mental_wellbeing", "readiness")
SCORE_WINDOW_DAYS = 7
PROFILE_PAGE_SIZE = 100


class SahhaAPIError(Exception):
    """Raised for any failed Sahha call (network error or non-2xx response)"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def to_percent(score: Optional[float]) -> Optional[int]:
    """Sahha reports scores as 0-1 floats; the dashboard works in 0-100 ints."""
    if score is None:
        return None
    return max(0, min(100, round(float(score) * 100)))


def normalize_score_type(score_type: str) -> str:
    # "mental_wellbeing" and "mentalwellbeing" both occur upstream
    key = score_type.replace("_", "").lower()
    return "mental_wellbeing" if key == "mentalwellbeing" else score_type.lower()


class SahhaClient:
    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = (base_url or settings.SAHHA_API_BASE_URL).rstrip("/")
        self._http = httpx.Client(
            base_url=self.base_url,
            timeout=timeout or settings.SAHHA_REQUEST_TIMEOUT,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )
        self._account_token: Optional[str] = None

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "SahhaClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise SahhaAPIError(f"Sahha request failed: {e}") from e
        if response.status_code >= 400:
            raise SahhaAPIError(
                f"Sahha API error {response.status_code} for {path}",
                status_code=response.status_code,
            )
        return response

    @staticmethod
    def _json(response: httpx.Response, expected: type, path: str):
        """Decoded body, checked to be ``expected`` (dict or list); null reads as empty."""
        try:
            body = response.json()
        except ValueError as e:
            raise SahhaAPIError(f"Sahha returned a non-JSON body for {path}") from e
        if body is None:
            return expected()
        if not isinstance(body, expected):
            raise SahhaAPIError(
                f"Unexpected Sahha response for {path}: expected {expected.__name__}, got {type(body).__name__}"
            )
        return body

    def authenticate(self) -> str:
        response = self._request(
            "POST",
            "/api/v1/oauth/account/token",
            json={"clientId": self.client_id, "clientSecret": self.client_secret},
        )
        token = self._json(response, dict, "/api/v1/oauth/account/token").get("accountToken")
        if not token:
            raise SahhaAPIError("Sahha token response did not include accountToken")
        self._account_token = token
        logger.info("[SahhaClient] Authentication successful")
        return token

    @property
    def account_token(self) -> str:
        if not self._account_token:
            return self.authenticate()
        return self._account_token

    def search_profiles(self, page_size: int = PROFILE_PAGE_SIZE, current_page: int = 1) -> List[Dict[str, Any]]:
        response = self._request(
            "GET",
            "/api/v1/account/profile/search",
            headers={"Authorization": f"Bearer {self.account_token}"},
            params={"pageSize": page_size, "currentPage": current_page},
        )
        items = self._json(response, dict, "/api/v1/account/profile/search").get("items") or []
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            raise SahhaAPIError("Unexpected Sahha profile search response: items must be a list of objects")
        logger.info(f"[SahhaClient] Found {len(items)} profiles")
        return items

    def fetch_scores(self, external_id: str) -> Dict[str, List[Dict[str, Any]]]:
        """All score types for one profile in a single call, grouped by normalized type."""
        end = now_utc()
        start = end - timedelta(days=SCORE_WINDOW_DAYS)
        params = [("types", t) for t in SCORE_TYPES]
        params += [
            ("startDateTime", start.date().isoformat()),
            ("endDateTime", end.date().isoformat()),
        ]
        response = self._request(
            "GET",
            f"/api/v1/profile/score/{external_id}",
            headers={"Authorization": f"account {self.account_token}"},
            params=params,
        )
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for score in self._json(response, list, f"/api/v1/profile/score/{external_id}"):
            if not isinstance(score, dict):
                raise SahhaAPIError(f"Unexpected Sahha score entry for {external_id}")
            grouped.setdefault(normalize_score_type(str(score.get("type") or "")), []).append(score)
        return grouped

    def fetch_archetypes(self, external_id: str) -> List[Dict[str, Any]]:
        try:
            response = self._request(
                "GET",
                f"/api/v1/profile/archetype/{external_id}",
                headers={"Authorization": f"account {self.account_token}"},
            )
        except SahhaAPIError as e:
            # Archetypes are not computed for every profile
            if e.status_code == 404:
                return []
            raise
        archetypes = self._json(response, list, f"/api/v1/profile/archetype/{external_id}")
        return [a for a in archetypes if isinstance(a, dict)]

    def fetch_health_scores(self, external_id: str) -> HealthScores:
        """Latest value of each score type, converted to 0-100."""
        try:
            grouped = self.fetch_scores(external_id)
        except SahhaAPIError as e:
            if e.status_code == 404:
                logger.info(f"[SahhaClient] No score data for {external_id}")
                return HealthScores()
            raise
        latest = {}
        for score_type in SCORE_TYPES:
            entries = grouped.get(score_type) or []
            # Most recent first
            latest[score_type] = to_percent(entries[0].get("score")) if entries else None
        return HealthScores(**latest)
