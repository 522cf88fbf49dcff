import logging
from typing import Dict

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from insights.api import deps
from insights.crud.department import DepartmentCRUD
from insights.schemas.department import Department, DepartmentAssignmentsResponse
from insights.services.profile_store import ProfileStore, SetAssignments

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("", response_model=Dict[str, str])
def get_assignments(db: Session = Depends(deps.get_db)):
    """Stored assignments as {profileId: departmentId}"""
    return DepartmentCRUD.get_assignments(db)


@router.post("", response_model=DepartmentAssignmentsResponse)
def save_assignments(
    assignments: Dict[str, Department] = Body(...),
    db: Session = Depends(deps.get_db),
    store: ProfileStore = Depends(deps.get_profile_store),
):
    """Upsert assignments; body is {profileId: departmentId}"""
    values = {profile_id: department.value for profile_id, department in assignments.items()}
    try:
        count = DepartmentCRUD.bulk_set_assignments(db, values)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"[Departments] Failed to save assignments: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to save department assignments: {str(e)}",
        )

    store.dispatch(SetAssignments({**store.state.assignments, **values}))
    logger.info(f"[Departments] Saved {count} assignments")
    return DepartmentAssignmentsResponse(success=True, message="Department assignments saved", count=count)
