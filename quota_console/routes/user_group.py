"""
User group HTTP routes, including enable groups and the permission matrix.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from quota_console.auth import require_admin
from quota_console.database import get_db
from quota_console.models import User, UserGroup
from quota_console.schemas import (
    UserGroupCreate, UserGroupUpdate, UserGroupResponse,
    EnableGroupsUpdate, PermissionsUpdate
)
from quota_console.services.model_group_service import ModelGroupService
from quota_console.services.user_group_service import UserGroupService
from .common import api_success, get_page_info, PageInfo

router = APIRouter(prefix="/api/user_group", tags=["user_group"])
enable_group_router = APIRouter(prefix="/api/enable_group", tags=["user_group"])


def _serialize(groups: List[UserGroup]) -> list:
    return [UserGroupResponse.model_validate(group).model_dump() for group in groups]


@router.get("")
def get_user_groups(
    page_info: PageInfo = Depends(get_page_info),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    groups, total = UserGroupService(db).list_groups(page_info.start_idx, page_info.page_size)
    page_info.items = _serialize(groups)
    page_info.total = total
    return api_success(page_info.to_dict())


@router.get("/search")
def search_user_groups(
    keyword: Optional[str] = Query(None),
    page_info: PageInfo = Depends(get_page_info),
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    groups, total = UserGroupService(db).search_groups(keyword, page_info.start_idx, page_info.page_size)
    page_info.items = _serialize(groups)
    page_info.total = total
    return api_success(page_info.to_dict())


@router.get("/active")
def get_active_user_groups(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    return api_success(_serialize(UserGroupService(db).get_active_groups()))


@router.get("/{user_group_id}")
def get_user_group(
    user_group_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    group = UserGroupService(db).get(user_group_id)
    return api_success(UserGroupResponse.model_validate(group).model_dump())


@router.post("")
def create_user_group(
    data: UserGroupCreate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    group = UserGroupService(db).create_group(data)
    return api_success(UserGroupResponse.model_validate(group).model_dump(), "User group created")


@router.put("")
def update_user_group(
    data: UserGroupUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    group = UserGroupService(db).update_group(data)
    return api_success(UserGroupResponse.model_validate(group).model_dump(), "User group updated")


@router.delete("/{user_group_id}")
def delete_user_group(
    user_group_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    UserGroupService(db).delete_group(user_group_id)
    return api_success(message="User group deleted")


@router.get("/{user_group_id}/enable_groups")
def get_user_group_enable_groups(
    user_group_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    return api_success(UserGroupService(db).get_enable_groups(user_group_id))


@router.put("/{user_group_id}/enable_groups")
def update_user_group_enable_groups(
    user_group_id: int,
    data: EnableGroupsUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    groups = UserGroupService(db).set_enable_groups(user_group_id, data.enable_groups)
    return api_success(groups, "Permissions updated")


@router.get("/{user_group_id}/permissions")
def get_user_group_permissions(
    user_group_id: int,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    permissions = ModelGroupService(db).get_permissions(user_group_id)
    return api_success({"user_group_id": user_group_id, "permissions": permissions})


@router.put("/{user_group_id}/permissions")
def update_user_group_permissions(
    user_group_id: int,
    data: PermissionsUpdate,
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    permissions = ModelGroupService(db).set_permissions(user_group_id, data.model_group_ids)
    return api_success(
        {"user_group_id": user_group_id, "permissions": permissions},
        "Permissions updated"
    )


@enable_group_router.get("")
def get_all_enable_groups(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin)
):
    """Every model group name that can be mapped to a user group."""
    return api_success(UserGroupService(db).list_available_enable_groups())
