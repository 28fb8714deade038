from __future__ import annotations

import json
import logging
from typing import Any, Optional

from sqlmodel import Session, select

from sociallearn.models import SettingType, SiteSetting

logger = logging.getLogger(__name__)


class InvalidSettingValueError(ValueError):
    pass


def serialize_setting_value(value: Any, setting_type: Optional[SettingType] = None) -> str:
    if setting_type == SettingType.json and isinstance(value, str):
        try:
            json.loads(value)
        except json.JSONDecodeError as exc:
            raise InvalidSettingValueError("Invalid JSON format") from exc
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


def coerce_setting_value(setting: SiteSetting) -> Any:
    value = setting.setting_value
    if setting.setting_type == SettingType.json and value:
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            logger.warning("Setting %s holds invalid JSON; returning raw text", setting.setting_key)
            return value
    if setting.setting_type == SettingType.boolean:
        return value == "true"
    if setting.setting_type == SettingType.number:
        try:
            return float(value or 0)
        except ValueError:
            return 0.0
    return value


def get_public_settings(session: Session) -> dict[str, Any]:
    rows = session.exec(
        select(SiteSetting).where(SiteSetting.is_public.is_(True)).order_by(SiteSetting.setting_key)
    ).all()
    return {row.setting_key: coerce_setting_value(row) for row in rows}


def get_setting_value(session: Session, key: str, default: Any = None) -> Any:
    setting = session.exec(select(SiteSetting).where(SiteSetting.setting_key == key)).first()
    if setting is None:
        return default
    return coerce_setting_value(setting)
