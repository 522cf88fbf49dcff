from .webhook import WebhookProfile, WebhookActivity
from .department import DepartmentAssignment

__all__ = ["WebhookProfile", "WebhookActivity", "DepartmentAssignment"]
