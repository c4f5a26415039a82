"""
Tenant matching preferences.

Admins tune matching per tenant through three system settings. Values were
written by several versions of the admin UI, so a stored value may be a
native JSON value, a JSON string, a bare string, or an object wrapping the
value under "value". All of them are accepted; anything unreadable falls back
to the default.
"""

import enum
import json
import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.models.system_setting import SystemSetting

logger = logging.getLogger(__name__)

VARIANCE_TOLERANCE_KEY = "reconciliation.varianceTolerance"
INCLUDE_FUTURE_SCHEDULES_KEY = "reconciliation.includeFutureSchedulesDefault"
ENGINE_MODE_KEY = "reconciliation.engineMode"

_TRUE_VALUES = ("true", "1", "yes", "y")
_FALSE_VALUES = ("false", "0", "no", "n")


class EngineMode(str, enum.Enum):
    ENV = "env"  # defer to HIERARCHICAL_MATCHING_ENABLED
    LEGACY = "legacy"
    HIERARCHICAL = "hierarchical"


DEFAULT_ENGINE_MODE = EngineMode.HIERARCHICAL


@dataclass(frozen=True)
class TenantMatchingPreferences:
    variance_tolerance: float = 0.0
    include_future_schedules_default: bool = False
    engine_mode: EngineMode = DEFAULT_ENGINE_MODE

    def use_hierarchical_matching(self, env_default: bool) -> bool:
        if self.engine_mode == EngineMode.ENV:
            return env_default
        return self.engine_mode == EngineMode.HIERARCHICAL


def _unwrap(raw):
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return raw
    if isinstance(raw, dict) and "value" in raw:
        return _unwrap(raw["value"])
    return raw


def parse_tolerance(raw, default: float) -> float:
    """Fractional tolerance clamped to [0, 1]."""
    value = _unwrap(raw)
    if isinstance(value, bool):
        return default
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return default
    if not isinstance(value, (int, float)) or value != value:
        return default
    return max(0.0, min(1.0, float(value)))


def parse_flag(raw, default: bool = False) -> bool:
    value = _unwrap(raw)
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
    return default


def parse_engine_mode(raw) -> EngineMode:
    value = _unwrap(raw)
    if isinstance(value, str):
        try:
            return EngineMode(value.strip().lower())
        except ValueError:
            pass
    return DEFAULT_ENGINE_MODE


def get_tenant_matching_preferences(
    db: Session,
    tenant_id,
    default_variance_tolerance: float = 0.0,
) -> TenantMatchingPreferences:
    """
    Load a tenant's matching preferences.

    A database error is logged and answered with defaults.
    """
    defaults = TenantMatchingPreferences(variance_tolerance=default_variance_tolerance)
    if tenant_id is None:
        return defaults

    try:
        rows = (
            db.query(SystemSetting.key, SystemSetting.value)
            .filter(
                SystemSetting.tenant_id == tenant_id,
                SystemSetting.key.in_(
                    [VARIANCE_TOLERANCE_KEY, INCLUDE_FUTURE_SCHEDULES_KEY, ENGINE_MODE_KEY]
                ),
            )
            .all()
        )
    except SQLAlchemyError:
        logger.exception("Failed to load reconciliation settings for tenant %s", tenant_id)
        return defaults

    values = {key: value for key, value in rows}
    return TenantMatchingPreferences(
        variance_tolerance=parse_tolerance(
            values.get(VARIANCE_TOLERANCE_KEY), default_variance_tolerance
        ),
        include_future_schedules_default=parse_flag(values.get(INCLUDE_FUTURE_SCHEDULES_KEY)),
        engine_mode=parse_engine_mode(values.get(ENGINE_MODE_KEY)),
    )
