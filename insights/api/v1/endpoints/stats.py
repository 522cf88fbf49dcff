import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from insights.api import deps
from insights.crud.webhook import WebhookCRUD, latest_update
from insights.services.aggregation import organization_metrics, sub_score_averages
from insights.services.export import SUB_SCORE_BUCKET_ORDER
from insights.services.profile_service import ProfileService
from insights.utils.timezone import isoformat_now

router = APIRouter()

logger = logging.getLogger(__name__)


@router.get("")
def get_stats(
    db: Session = Depends(deps.get_db),
    service: ProfileService = Depends(deps.get_profile_service),
):
    """Organization metrics, biomarker averages and a webhook store summary"""
    profiles = service.ensure_loaded(db)
    metrics = organization_metrics(profiles, service.all_profile_archetypes(profiles))
    webhook_rows = WebhookCRUD.list_profiles(db)

    return {
        "success": True,
        "source": service.store.state.source,
        "metrics": metrics.model_dump(by_alias=True),
        "subScoreAverages": {bucket: sub_score_averages(profiles, bucket) for bucket in SUB_SCORE_BUCKET_ORDER},
        "webhook": {
            "totalProfiles": len(webhook_rows),
            "lastUpdated": latest_update(webhook_rows),
        },
        "generated": isoformat_now(),
    }
