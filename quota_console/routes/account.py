"""
User, option and log HTTP routes.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quota_console.auth import get_current_user, require_admin
from quota_console.database import get_db
from quota_console.models import User
from quota_console.quota import render_quota
from quota_console.schemas import UserSelfResponse, OptionUpdate, LogResponse
from quota_console.services.log_service import LogService
from quota_console.services.model_group_service import ModelGroupService
from quota_console.services.option_service import OptionService
from .common import api_success, get_page_info, PageInfo

user_router = APIRouter(prefix="/api/user", tags=["user"])
option_router = APIRouter(prefix="/api/option", tags=["option"])
log_router = APIRouter(prefix="/api/log", tags=["log"])


# ===== USER =====

@user_router.get("/self")
def get_self(user: User = Depends(get_current_user)):
    data = UserSelfResponse.model_validate(user).model_dump()
    data["quota_display"] = render_quota(user.quota)
    return api_success(data)


@user_router.get("/models/{model_name:path}")
def check_model_access(
    model_name: str,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Whether the current user's group may use a model."""
    allowed = ModelGroupService(db).can_use_model(user, model_name)
    return api_success({"model_name": model_name, "allowed": allowed})


# ===== OPTIONS =====

@option_router.get("/")
def get_options(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    return api_success(OptionService(db).get_all())


@option_router.put("/")
def update_option(
    data: OptionUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    return api_success(OptionService(db).update(data.key, data.value), "Option saved")


# ===== LOGS =====

def _log_page(db: Session, page_info: PageInfo, **filters) -> dict:
    logs, total = LogService(db).get_logs(page_info.start_idx, page_info.page_size, **filters)
    page_info.items = [LogResponse.model_validate(log).model_dump() for log in logs]
    page_info.total = total
    return page_info.to_dict()


@log_router.get("/self")
def get_own_logs(
    type: Optional[int] = Query(None),
    model_name: Optional[str] = Query(None),
    start_timestamp: Optional[int] = Query(None),
    end_timestamp: Optional[int] = Query(None),
    page_info: PageInfo = Depends(get_page_info),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return api_success(_log_page(
        db, page_info, user_id=user.id, log_type=type, model_name=model_name,
        start_timestamp=start_timestamp, end_timestamp=end_timestamp
    ))


@log_router.get("/")
def get_all_logs(
    user_id: Optional[int] = Query(None),
    type: Optional[int] = Query(None),
    model_name: Optional[str] = Query(None),
    start_timestamp: Optional[int] = Query(None),
    end_timestamp: Optional[int] = Query(None),
    page_info: PageInfo = Depends(get_page_info),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    return api_success(_log_page(
        db, page_info, user_id=user_id, log_type=type, model_name=model_name,
        start_timestamp=start_timestamp, end_timestamp=end_timestamp
    ))
