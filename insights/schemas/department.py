from enum import Enum
from typing import Dict

from pydantic import BaseModel


class Department(str, Enum):
    """Closed set of departments a profile can be assigned to"""
    UNASSIGNED = "unassigned"
    TECH = "tech"
    OPERATIONS = "operations"
    SALES = "sales"
    ADMIN = "admin"


DEPARTMENT_NAMES: Dict[str, str] = {
    Department.UNASSIGNED.value: "Unassigned",
    Department.TECH.value: "Technology",
    Department.OPERATIONS.value: "Operations",
    Department.SALES.value: "Sales & Marketing",
    Department.ADMIN.value: "Administration",
}


def department_name(department_id: str) -> str:
    return DEPARTMENT_NAMES.get(department_id, DEPARTMENT_NAMES[Department.UNASSIGNED.value])


class DepartmentAssignmentsResponse(BaseModel):
    success: bool = True
    message: str
    count: int
