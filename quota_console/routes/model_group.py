"""
Model group HTTP routes.
"""
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quota_console.auth import require_admin
from quota_console.database import get_db
from quota_console.models import User
from quota_console.schemas import ModelGroupCreate, ModelGroupUpdate, ModelGroupResponse
from quota_console.services.model_group_service import ModelGroupService
from .common import api_success, get_page_info, PageInfo

router = APIRouter(prefix="/api/model_group", tags=["model_group"])


def _page(db: Session, keyword: Optional[str], page_info: PageInfo) -> dict:
    groups, total = ModelGroupService(db).search_groups(keyword, page_info.start_idx, page_info.page_size)
    page_info.items = [ModelGroupResponse.model_validate(group).model_dump() for group in groups]
    page_info.total = total
    return page_info.to_dict()


@router.get("")
def get_model_groups(
    page_info: PageInfo = Depends(get_page_info),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    return api_success(_page(db, None, page_info))


@router.get("/search")
def search_model_groups(
    keyword: Optional[str] = Query(None),
    page_info: PageInfo = Depends(get_page_info),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    return api_success(_page(db, keyword, page_info))


@router.get("/{model_group_id}")
def get_model_group(
    model_group_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    group = ModelGroupService(db).get(model_group_id)
    return api_success(ModelGroupResponse.model_validate(group).model_dump())


@router.post("")
def create_model_group(
    data: ModelGroupCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    group = ModelGroupService(db).create_group(data)
    return api_success(ModelGroupResponse.model_validate(group).model_dump(), "Model group created")


@router.put("")
def update_model_group(
    data: ModelGroupUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    group = ModelGroupService(db).update_group(data)
    return api_success(ModelGroupResponse.model_validate(group).model_dump(), "Model group updated")


@router.delete("/{model_group_id}")
def delete_model_group(
    model_group_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    ModelGroupService(db).delete_group(model_group_id)
    return api_success(message="Model group deleted")
