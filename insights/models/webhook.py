from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON, Index

from insights.db.base import Base


class WebhookProfile(Base):
    """Latest merged Sahha payload for one profile, keyed by external id"""
    __tablename__ = "webhook_profiles"

    id = Column(Integer, primary_key=True, index=True)
    external_id = Column(String(255), nullable=False, unique=True, index=True)
    profile_id = Column(String(255), nullable=True, index=True)
    account_id = Column(String(255), nullable=True)

    # Everything Sahha pushed for this profile, shallow-merged across deliveries
    payload = Column(JSON, nullable=False, default=dict)
    last_updated = Column(String(64), nullable=True)  # ISO8601 as delivered

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class WebhookActivity(Base):
    """One row per processed (or rejected) webhook delivery"""
    __tablename__ = "webhook_activity"

    id = Column(Integer, primary_key=True, index=True)
    event = Column(String(64), nullable=True)
    profiles_updated = Column(Integer, nullable=False, default=0)
    success = Column(Boolean, nullable=False, default=True)
    error = Column(String(1024), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    __table_args__ = (
        Index('idx_webhook_activity_event_created', 'event', 'created_at'),
    )
