from .webhook import WebhookCRUD
from .department import DepartmentCRUD

__all__ = ["WebhookCRUD", "DepartmentCRUD"]
