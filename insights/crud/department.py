from typing import Dict

from sqlalchemy.orm import Session

from insights.models.department import DepartmentAssignment


class DepartmentCRUD:

    @staticmethod
    def get_assignments(db: Session) -> Dict[str, str]:
        """All stored assignments as {profile_id: department_id}"""
        rows = db.query(DepartmentAssignment).all()
        return {row.profile_id: row.department_id for row in rows}

    @staticmethod
    def set_assignment(db: Session, profile_id: str, department_id: str) -> DepartmentAssignment:
        row = db.query(DepartmentAssignment).filter(DepartmentAssignment.profile_id == profile_id).first()
        if row is None:
            row = DepartmentAssignment(profile_id=profile_id, department_id=department_id)
            db.add(row)
        else:
            row.department_id = department_id
        db.commit()
        db.refresh(row)
        return row

    @staticmethod
    def bulk_set_assignments(db: Session, assignments: Dict[str, str]) -> int:
        """Upsert many assignments in one transaction"""
        existing = {
            row.profile_id: row
            for row in db.query(DepartmentAssignment)
            .filter(DepartmentAssignment.profile_id.in_(list(assignments)))
            .all()
        }
        for profile_id, department_id in assignments.items():
            row = existing.get(profile_id)
            if row is None:
                db.add(DepartmentAssignment(profile_id=profile_id, department_id=department_id))
            else:
                row.department_id = department_id
        db.commit()
        return len(assignments)
