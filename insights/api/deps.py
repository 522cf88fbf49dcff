from typing import Generator

from fastapi import Depends, Request

from insights.db.session import SessionLocal
from insights.services.profile_service import ProfileService
from insights.services.profile_store import ProfileStore


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_profile_store(request: Request) -> ProfileStore:
    """The application's profile store; one per app instance, created in create_app()."""
    return request.app.state.profile_store


def get_profile_service(
    request: Request,
    store: ProfileStore = Depends(get_profile_store),
) -> ProfileService:
    return ProfileService(store, client_factory=getattr(request.app.state, "sahha_client_factory", None))


async def get_raw_body(request: Request) -> bytes:
    """Request body exactly as sent; signature checks need the raw bytes."""
    return await request.body()
