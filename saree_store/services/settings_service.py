# services/settings_service.py
from ..constants.service_code import SETTING_DEFAULTS
from ..models.engagement import AppSetting
from ..utils.errors import AppError
from ..utils.helpers import utcnow
from ..utils.logger import Log


class SettingsService:
    """Key/value application settings with typed defaults."""

    @staticmethod
    def _coerce(key, value):
        default = SETTING_DEFAULTS[key]
        if isinstance(default, bool):
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        if isinstance(default, int):
            try:
                coerced = int(value)
            except (TypeError, ValueError):
                raise AppError(f"Setting '{key}' must be an integer")
            if coerced < 0:
                raise AppError(f"Setting '{key}' must not be negative")
            return coerced
        return value

    @staticmethod
    def get(key):
        if key not in SETTING_DEFAULTS:
            raise AppError(f"Unknown setting '{key}'")
        doc = AppSetting.find_one({"key": key})
        if doc is None:
            return SETTING_DEFAULTS[key]
        return SettingsService._coerce(key, doc.get("value"))

    @staticmethod
    def get_all():
        stored = {doc["key"]: doc.get("value") for doc in AppSetting.find({"key": {"$in": list(SETTING_DEFAULTS)}})}
        return {
            key: SettingsService._coerce(key, stored[key]) if key in stored else default
            for key, default in SETTING_DEFAULTS.items()
        }

    @staticmethod
    def update(updates, updated_by=None):
        log_tag = f"[settings_service.py][SettingsService][update][{updated_by}]"

        unknown = [key for key in updates if key not in SETTING_DEFAULTS]
        if unknown:
            raise AppError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

        now = utcnow()
        for key, value in updates.items():
            AppSetting.collection().update_one(
                {"key": key},
                {
                    "$set": {"value": SettingsService._coerce(key, value), "updated_at": now},
                    "$setOnInsert": {"created_at": now},
                },
                upsert=True,
            )

        Log.info(f"{log_tag} settings updated: {sorted(updates)}")
        return SettingsService.get_all()
