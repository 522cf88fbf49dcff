import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from insights.api import deps
from insights.core.config import settings
from insights.core.security import verify_webhook_signature
from insights.crud.webhook import WebhookCRUD, latest_update, serialize_profile
from insights.schemas.webhook import (
    IntegrationEvent,
    WebhookAck,
    WebhookPayload,
    WebhookProfilesResponse,
    is_integration_event,
)
from insights.synthesis import create_demo_profiles
from insights.utils.timezone import isoformat_now

router = APIRouter()

logger = logging.getLogger(__name__)


def _error(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    content = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def _signature_bypassed(request: Request) -> bool:
    return (
        settings.is_development
        and settings.ALLOW_SIGNATURE_BYPASS
        and request.headers.get("X-Bypass-Signature") == "test"
    )


def _reject(db: Session, reason: str) -> JSONResponse:
    logger.warning(f"[Webhook] Rejected malformed payload: {reason}")
    WebhookCRUD.log_activity(db, event=None, success=False, error=reason)
    return _error(status.HTTP_400_BAD_REQUEST, "Invalid webhook payload", reason)


def _store_failed(db: Session, event: Optional[str], e: SQLAlchemyError) -> JSONResponse:
    db.rollback()
    logger.error(f"[Webhook] Failed to store {event}: {e}")
    WebhookCRUD.log_activity(db, event="error", success=False, error=str(e))
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to process webhook", str(e))


def _validation_reason(e: ValidationError) -> str:
    return "; ".join(err["msg"] for err in e.errors())


def _receive_integration_event(
    db: Session,
    body: Any,
    event_type: str,
    header_external_id: Optional[str],
):
    try:
        event = IntegrationEvent.model_validate(body)
    except ValidationError as e:
        return _reject(db, _validation_reason(e))

    # X-External-Id wins over anything in the body
    if header_external_id:
        event = event.model_copy(update={"external_id": header_external_id})
    if not event.external_id:
        return _reject(db, f"{event_type} requires an externalId")

    try:
        processed = WebhookCRUD.apply_integration_event(db, event, event_type)
    except SQLAlchemyError as e:
        return _store_failed(db, event_type, e)

    WebhookCRUD.log_activity(db, event=event_type, profiles_updated=processed)
    return WebhookAck(
        success=True,
        message="Webhook processed successfully",
        event=event_type,
        profiles_processed=processed,
    )


@router.post("", response_model=WebhookAck)
def receive_webhook(
    request: Request,
    raw_body: bytes = Depends(deps.get_raw_body),
    db: Session = Depends(deps.get_db),
):
    """Receive a Sahha push: verify the signature, validate, then merge into the store"""
    signature = request.headers.get("X-Signature")
    event_type = request.headers.get("X-Event-Type")
    external_id = request.headers.get("X-External-Id")
    logger.info(f"[Webhook] Received event_type={event_type} external_id={external_id} bytes={len(raw_body)}")

    secret = settings.SAHHA_WEBHOOK_SECRET
    if _signature_bypassed(request):
        logger.info("[Webhook] Signature verification bypassed for testing")
    elif secret:
        if not signature:
            return _error(status.HTTP_400_BAD_REQUEST, "X-Signature header is missing")
        if not verify_webhook_signature(signature, raw_body, secret):
            logger.error(f"[Webhook] Invalid signature for external_id={external_id}")
            return _error(status.HTTP_401_UNAUTHORIZED, "Invalid signature")
    else:
        logger.warning("[Webhook] No SAHHA_WEBHOOK_SECRET configured - accepting webhook without verification")

    try:
        body = json.loads(raw_body)
    except ValueError as e:
        return _reject(db, f"Body is not valid JSON: {e}")

    # Sahha names the event in a header; older senders put it in the body
    if not event_type and isinstance(body, dict) and isinstance(body.get("eventType"), str):
        event_type = body["eventType"]
    if is_integration_event(event_type):
        return _receive_integration_event(db, body, event_type, external_id)

    try:
        payload = WebhookPayload.model_validate(body)
    except ValidationError as e:
        return _reject(db, _validation_reason(e))

    try:
        processed = WebhookCRUD.apply_event(db, payload)
    except SQLAlchemyError as e:
        return _store_failed(db, payload.event, e)

    WebhookCRUD.log_activity(db, event=payload.event, profiles_updated=processed)
    logger.info(f"[Webhook] Processed {payload.event} ({processed} profiles)")
    return WebhookAck(
        success=True,
        message="Webhook processed successfully",
        event=payload.event,
        profiles_processed=processed,
    )


@router.get("")
def get_webhook_data(
    external_id: Optional[str] = Query(None, alias="externalId"),
    mode: Optional[str] = Query(None),
    db: Session = Depends(deps.get_db),
):
    """Stored webhook profiles, one profile by ``externalId``, or demo data with ``mode=demo``"""
    if mode == "demo":
        profiles = create_demo_profiles(settings.DEMO_PROFILE_COUNT)
        return WebhookProfilesResponse(
            count=len(profiles),
            profiles=[p.model_dump(by_alias=True) for p in profiles],
            last_updated=isoformat_now(),
            demo_mode=True,
        )

    if external_id:
        row = WebhookCRUD.get_profile(db, external_id)
        if row is None:
            return _error(status.HTTP_404_NOT_FOUND, "Profile not found")
        return {"success": True, "data": serialize_profile(row)}

    rows = WebhookCRUD.list_profiles(db)
    return WebhookProfilesResponse(
        count=len(rows),
        profiles=[serialize_profile(row) for row in rows],
        last_updated=latest_update(rows),
    )


@router.delete("")
def clear_webhook_data(
    confirm: Optional[str] = Query(None),
    db: Session = Depends(deps.get_db),
):
    """Clear all stored webhook profiles; requires ``?confirm=true``"""
    if confirm != "true":
        return _error(status.HTTP_400_BAD_REQUEST, "Must confirm deletion with ?confirm=true")
    deleted = WebhookCRUD.clear(db)
    logger.info(f"[Webhook] Cleared {deleted} stored profiles")
    return {"success": True, "message": "Webhook data cleared"}


@router.get("/activity")
def get_webhook_activity(
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(deps.get_db),
):
    """Most recent deliveries, newest first"""
    entries = WebhookCRUD.recent_activity(db, limit=limit)
    return {
        "success": True,
        "count": len(entries),
        "activity": [
            {
                "timestamp": entry.created_at.isoformat() if entry.created_at else None,
                "event": entry.event,
                "profilesUpdated": entry.profiles_updated,
                "success": entry.success,
                "error": entry.error,
            }
            for entry in entries
        ],
    }
