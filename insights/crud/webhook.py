import copy
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from insights.models.webhook import WebhookActivity, WebhookProfile
from insights.schemas.webhook import BATCH_EVENT, IntegrationEvent, WebhookPayload
from insights.utils.timezone import isoformat_now

logger = logging.getLogger(__name__)


class WebhookCRUD:

    @staticmethod
    def get_profile(db: Session, external_id: str) -> Optional[WebhookProfile]:
        return db.query(WebhookProfile).filter(WebhookProfile.external_id == external_id).first()

    @staticmethod
    def list_profiles(db: Session) -> List[WebhookProfile]:
        return db.query(WebhookProfile).order_by(WebhookProfile.id).all()

    @staticmethod
    def count_profiles(db: Session) -> int:
        return db.query(WebhookProfile).count()

    @staticmethod
    def _store(db: Session, external_id: str, payload: Dict[str, Any]) -> WebhookProfile:
        """Insert or overwrite the stored payload for one external id (no commit)."""
        row = WebhookCRUD.get_profile(db, external_id)
        if row is None:
            row = WebhookProfile(external_id=external_id)
            db.add(row)
        # Reassign rather than mutate so the JSON column is flagged dirty
        row.payload = payload
        row.profile_id = payload.get("profileId") or row.profile_id
        row.account_id = payload.get("accountId") or row.account_id
        row.last_updated = payload.get("lastUpdated")
        # Sessions don't autoflush; a repeat id in the same batch must see this row
        db.flush()
        return row

    @staticmethod
    def merge_profile(db: Session, external_id: str, updates: Dict[str, Any]) -> WebhookProfile:
        """Shallow-merge ``updates`` over the stored payload; later keys win."""
        existing = WebhookCRUD.get_profile(db, external_id)
        current = dict(existing.payload or {}) if existing else {}
        return WebhookCRUD._store(db, external_id, {**current, **updates})

    @staticmethod
    def apply_event(db: Session, payload: WebhookPayload) -> int:
        """Apply one webhook delivery and commit. Returns the number of profiles touched."""
        timestamp = payload.timestamp or isoformat_now()
        data = payload.data
        processed = 0

        if payload.event == BATCH_EVENT:
            for profile in data.profiles or []:
                raw = profile.model_dump(by_alias=True, exclude_unset=True)
                WebhookCRUD.merge_profile(db, profile.external_id, {**raw, "lastUpdated": timestamp})
                processed += 1

        elif payload.event == "score.updated":
            if data.scores is not None:
                WebhookCRUD.merge_profile(db, data.external_id, {"scores": data.scores, "lastUpdated": timestamp})
            processed = 1

        elif payload.event == "archetype.calculated":
            if data.archetypes is not None:
                WebhookCRUD.merge_profile(
                    db, data.external_id, {"archetypes": data.archetypes, "lastUpdated": timestamp}
                )
            processed = 1

        elif payload.event == "profile.created":
            WebhookCRUD._store(
                db,
                data.external_id,
                {
                    "profileId": data.profile_id,
                    "externalId": data.external_id,
                    "createdAt": timestamp,
                    "lastUpdated": timestamp,
                },
            )
            processed = 1

        else:
            logger.warning(f"[Webhook] Unknown webhook event: {payload.event}")
            processed = len(data.profiles or [])

        db.commit()
        return processed

    @staticmethod
    def apply_integration_event(db: Session, event: IntegrationEvent, event_type: Optional[str] = None) -> int:
        """Merge one Integration Event into its profile record and commit. Returns 1 if stored."""
        kind = event.kind(event_type)
        if kind is None:
            logger.warning(f"[Webhook] Unrecognized integration event {event_type} for {event.external_id}")
            return 0

        external_id = event.external_id
        existing = WebhookCRUD.get_profile(db, external_id)
        record = copy.deepcopy(existing.payload) if existing and existing.payload else _new_record(event)
        updated_at = event.created_at_utc

        if kind == "score":
            score_type = event.type or "unknown"
            _section(record, "scores")[score_type] = {
                "value": event.score,
                "state": event.state,
                "scoreDateTime": event.score_date_time,
                "dataSources": event.data_sources,
                "version": event.version,
                "updatedAt": updated_at,
            }
            if event.factors:
                _section(record, "factors")[score_type] = event.factors

        elif kind == "biomarker":
            _section(record, "biomarkers")[f"{event.category}_{event.type}"] = {
                "category": event.category,
                "type": event.type,
                "value": event.value,
                "unit": event.unit,
                "valueType": event.value_type,
                "periodicity": event.periodicity,
                "aggregation": event.aggregation,
                "startDateTime": event.start_date_time,
                "endDateTime": event.end_date_time,
                "version": event.version,
                "updatedAt": updated_at,
            }

        elif kind == "archetype":
            _section(record, "archetypes")[event.name or "unknown"] = {
                "value": event.value,
                "dataType": event.data_type,
                "ordinality": event.ordinality,
                "periodicity": event.periodicity,
                "startDateTime": event.start_date_time,
                "endDateTime": event.end_date_time,
                "version": event.version,
                "updatedAt": updated_at,
            }

        elif kind == "datalog":
            logs = event.data_logs or []
            key = f"{event.log_type}_{event.data_type}"
            _section(record, "dataLogs").setdefault(key, []).append(
                {"receivedAt": event.received_at_utc, "logs": logs}
            )
            # Device details ride along on the first log entry
            first = logs[0] if logs else {}
            if first.get("deviceType") or first.get("source"):
                device = _section(record, "device")
                device.setdefault("type", "unknown")
                device.setdefault("source", "unknown")
                if first.get("deviceType"):
                    device["type"] = first["deviceType"]
                if first.get("source"):
                    device["source"] = first["source"]
                device["lastSeen"] = event.received_at_utc

        record["lastUpdated"] = event.timestamp or isoformat_now()
        WebhookCRUD._store(db, external_id, record)
        db.commit()
        logger.info(f"[Webhook] Stored {kind} integration event for {external_id}")
        return 1

    @staticmethod
    def clear(db: Session) -> int:
        deleted = db.query(WebhookProfile).delete()
        db.commit()
        return deleted

    @staticmethod
    def log_activity(
        db: Session,
        event: Optional[str],
        profiles_updated: int = 0,
        success: bool = True,
        error: Optional[str] = None,
    ) -> WebhookActivity:
        entry = WebhookActivity(
            event=event[:64] if event else None,
            profiles_updated=profiles_updated,
            success=success,
            error=error[:1024] if error else None,
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry

    @staticmethod
    def recent_activity(db: Session, limit: int = 50) -> List[WebhookActivity]:
        return db.query(WebhookActivity).order_by(desc(WebhookActivity.created_at)).limit(limit).all()


def serialize_profile(row: WebhookProfile) -> Dict[str, Any]:
    """Stored payload as delivered, with the key fields guaranteed present."""
    payload = dict(row.payload or {})
    payload.setdefault("externalId", row.external_id)
    if row.last_updated:
        payload["lastUpdated"] = row.last_updated
    return payload


def latest_update(rows: List[WebhookProfile]) -> Optional[str]:
    # ISO8601 strings in one format sort chronologically
    stamps = [row.last_updated for row in rows if row.last_updated]
    return max(stamps) if stamps else None


def _new_record(event: IntegrationEvent) -> Dict[str, Any]:
    return {
        "profileId": event.profile_id or f"sahha-{event.external_id}",
        "externalId": event.external_id,
        "accountId": event.account_id,
        "archetypes": {},
        "scores": {},
        "factors": {},
        "device": {"type": "unknown", "source": "unknown", "lastSeen": None},
        "demographics": {"age": None, "gender": None, "location": None},
        "lastUpdated": event.timestamp,
    }


def _section(record: Dict[str, Any], key: str) -> Dict[str, Any]:
    """The nested dict under ``key``, replacing anything that is not a dict."""
    section = record.get(key)
    if not isinstance(section, dict):
        section = record[key] = {}
    return section
