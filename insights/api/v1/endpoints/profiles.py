import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from insights.api import deps
from insights.schemas.profile import EditableIdUpdate, Profile, ProfileArchetypes, ProfileListResponse
from insights.services.export import export_filename, export_profiles_csv
from insights.services.profile_service import ProfileService
from insights.services.profile_store import UpdateEditableId
from insights.utils.timezone import isoformat_now

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("", response_model=ProfileListResponse)
def list_profiles(
    refresh: bool = Query(False, description="Re-fetch from Sahha instead of using loaded profiles"),
    db: Session = Depends(deps.get_db),
    service: ProfileService = Depends(deps.get_profile_service),
):
    """Profiles with scores; live from Sahha when configured, synthesized otherwise"""
    if refresh or not service.store.state.profiles:
        result = service.load_profiles(db)
        source, profiles, error = result["source"], result["profiles"], result["error"]
    else:
        profiles = service.store.profiles()
        source = service.store.state.source
        error = service.store.state.error

    return ProfileListResponse(
        success=True,
        source=source,
        count=len(profiles),
        profiles=profiles,
        timestamp=isoformat_now(),
        error=error,
    )


@router.get("/export")
def export_profiles(
    org_id: str = Query("default", alias="orgId"),
    db: Session = Depends(deps.get_db),
    service: ProfileService = Depends(deps.get_profile_service),
):
    """CSV of every profile with archetypes and biomarkers"""
    profiles = service.ensure_loaded(db)
    content = export_profiles_csv(profiles, service.all_profile_archetypes(profiles))
    logger.info(f"[Export] Exported {len(profiles)} profiles for org {org_id}")
    return Response(
        content=content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{export_filename(org_id)}"'},
    )


@router.get("/{profile_id}/archetypes", response_model=ProfileArchetypes)
def get_profile_archetypes(
    profile_id: str,
    db: Session = Depends(deps.get_db),
    service: ProfileService = Depends(deps.get_profile_service),
):
    service.ensure_loaded(db)
    profile = service.store.get_profile(profile_id)
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return service.profile_archetypes(profile)


@router.patch("/{profile_id}/editable-id", response_model=Profile)
def update_editable_id(
    profile_id: str,
    body: EditableIdUpdate,
    db: Session = Depends(deps.get_db),
    service: ProfileService = Depends(deps.get_profile_service),
):
    """Rename the user-facing label of a profile; profileId itself never changes"""
    service.ensure_loaded(db)
    if service.store.get_profile(profile_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    service.store.dispatch(UpdateEditableId(profile_id, body.editable_id.strip()))
    logger.info(f"[Profiles] Editable id for {profile_id} set to '{body.editable_id.strip()}'")
    return service.store.get_profile(profile_id)
