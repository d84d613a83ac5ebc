"""
Check-in HTTP routes.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quota_console.auth import get_current_user, require_admin
from quota_console.database import get_db
from quota_console.models import User
from quota_console.schemas import CheckinRequest, CheckinConfigUpdate, CheckinConfigResponse
from quota_console.services.checkin_service import CheckinService
from .common import api_success, get_page_info, PageInfo

router = APIRouter(prefix="/api/checkin", tags=["checkin"])


@router.get("/status")
def get_checkin_status(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Today's state, statistics and feature toggles for the current user."""
    return api_success(CheckinService(db).get_status(user))


@router.get("/history")
def get_checkin_history(
    page_info: PageInfo = Depends(get_page_info),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Current user's check-in records, newest first."""
    items, total = CheckinService(db).get_history(user.id, page_info.page, page_info.page_size)
    page_info.items = items
    page_info.total = total
    return api_success(page_info.to_dict())


@router.post("/")
def checkin(
    request: Optional[CheckinRequest] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Check in for today."""
    code = request.checkin_code if request else None
    result = CheckinService(db).checkin(user, code)
    return api_success(result, "Check-in successful")


@router.get("/config")
def get_checkin_config(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    config = CheckinService(db).get_config()
    return api_success(CheckinConfigResponse.model_validate(config).model_dump())


@router.put("/config")
def update_checkin_config(
    update: CheckinConfigUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    config = CheckinService(db).update_config(update)
    return api_success(
        CheckinConfigResponse.model_validate(config).model_dump(),
        "Check-in config updated"
    )


@router.get("/admin/history")
def get_all_checkin_history(
    user_id: Optional[int] = Query(None),
    page_info: PageInfo = Depends(get_page_info),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    """Every user's check-in records, or one user's when user_id is given."""
    items, total = CheckinService(db).get_all_history(page_info.page, page_info.page_size, user_id)
    page_info.items = items
    page_info.total = total
    return api_success(page_info.to_dict())
