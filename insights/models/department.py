from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime

from insights.db.base import Base


class DepartmentAssignment(Base):
    """Profile -> department mapping managed from the dashboard"""
    __tablename__ = "department_assignments"

    id = Column(Integer, primary_key=True, index=True)
    profile_id = Column(String(255), nullable=False, unique=True, index=True)
    department_id = Column(String(32), nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
