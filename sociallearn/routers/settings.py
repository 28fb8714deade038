from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select

from sociallearn.core.timeutils import utc_now
from sociallearn.dependencies import get_db, require_permission
from sociallearn.models import Permission, SiteSetting, User
from sociallearn.schemas.site_setting import SettingCreate, SettingRead, SettingUpdate
from sociallearn.services.site_settings import (
    InvalidSettingValueError,
    get_public_settings,
    serialize_setting_value,
)

router = APIRouter(prefix="/settings", tags=["settings"])
logger = logging.getLogger(__name__)


@router.get("/public", response_model=dict[str, Any])
def read_public_settings(db: Session = Depends(get_db)) -> dict[str, Any]:
    return get_public_settings(db)


@router.get("/all", response_model=list[SettingRead])
def read_all_settings(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_settings)),
) -> list[SiteSetting]:
    del current_user
    return list(db.exec(select(SiteSetting).order_by(SiteSetting.setting_key)).all())


@router.put("/{key}", response_model=SettingRead)
def update_setting(
    key: str,
    payload: SettingUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_settings)),
) -> SiteSetting:
    setting = db.exec(select(SiteSetting).where(SiteSetting.setting_key == key)).first()
    if not setting:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Setting not found")

    setting_type = payload.type or setting.setting_type
    try:
        setting.setting_value = serialize_setting_value(payload.value, setting_type)
    except InvalidSettingValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    setting.setting_type = setting_type
    setting.updated_by = current_user.id
    setting.updated_at = utc_now()
    db.add(setting)
    db.commit()
    db.refresh(setting)
    logger.info("Setting %s updated by %s", key, current_user.id)
    return setting


@router.post("", response_model=SettingRead, status_code=status.HTTP_201_CREATED)
def create_setting(
    payload: SettingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission(Permission.manage_settings)),
) -> SiteSetting:
    key = payload.key.strip()
    existing = db.exec(select(SiteSetting).where(SiteSetting.setting_key == key)).first()
    if existing:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Setting key already exists")

    try:
        value = serialize_setting_value(payload.value, payload.type)
    except InvalidSettingValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    setting = SiteSetting(
        setting_key=key,
        setting_value=value,
        setting_type=payload.type,
        description=payload.description,
        is_public=payload.is_public,
        updated_by=current_user.id,
    )
    db.add(setting)
    db.commit()
    db.refresh(setting)
    logger.info("Setting %s created by %s", key, current_user.id)
    return setting
