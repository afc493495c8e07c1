# ch_core/local_cache/store.py
"""
Per-device convenience cache for lightweight checklists.

Not synchronized with, and never merged into, audit completions or any other
backend record. Missing or corrupt values read back as defaults.

Values are JSON strings in the CACHES[LOCAL_CACHE_ALIAS] cache, stored without
expiry. Django caches cannot enumerate their keys, so written keys are also
recorded under local-cache-keys.

Keys:
  completed-audits                         list of completed audit snapshots
  home-audit-{organizationId}-{category}   {rowStatuses, auditorNames}
  resident-audit-{residentId}              {rowStatuses, auditorNames, lastAuditedDates, dueDates}
"""
from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List

from django.conf import settings
from django.core.cache import caches
from django.core.cache.backends.base import BaseCache

from ch_core.common.logging import get_logger

log = get_logger(__name__)

COMPLETED_AUDITS_KEY = "completed-audits"
KEY_INDEX_KEY = "local-cache-keys"
DEFAULT_ROW_STATUS = "pending"


def home_audit_key(organization_id, category: str) -> str:
    return f"home-audit-{organization_id}-{category}"


def resident_audit_key(resident_id) -> str:
    return f"resident-audit-{resident_id}"


def _str_map(value: Any) -> Dict[str, str]:
    """Row-index map with string keys; anything malformed is dropped."""
    if not isinstance(value, dict):
        return {}
    return {str(k): str(v) for k, v in value.items() if v is not None}


@dataclass
class HomeAuditState:
    row_statuses: Dict[str, str] = field(default_factory=dict)
    auditor_names: Dict[str, str] = field(default_factory=dict)

    def status_for(self, row: int) -> str:
        return self.row_statuses.get(str(row), DEFAULT_ROW_STATUS)

    def auditor_for(self, row: int) -> str:
        return self.auditor_names.get(str(row), "")

    def set_row(self, row: int, *, status: str | None = None, auditor_name: str | None = None) -> None:
        if status is not None:
            self.row_statuses[str(row)] = status
        if auditor_name is not None:
            self.auditor_names[str(row)] = auditor_name

    def to_json(self) -> Dict[str, Any]:
        return {"rowStatuses": dict(self.row_statuses), "auditorNames": dict(self.auditor_names)}

    @classmethod
    def from_json(cls, value: Any) -> "HomeAuditState":
        if not isinstance(value, dict):
            return cls()
        return cls(
            row_statuses=_str_map(value.get("rowStatuses")),
            auditor_names=_str_map(value.get("auditorNames")),
        )


@dataclass
class ResidentAuditState(HomeAuditState):
    last_audited_dates: Dict[str, str] = field(default_factory=dict)
    due_dates: Dict[str, str] = field(default_factory=dict)

    def to_json(self) -> Dict[str, Any]:
        data = super().to_json()
        data["lastAuditedDates"] = dict(self.last_audited_dates)
        data["dueDates"] = dict(self.due_dates)
        return data

    @classmethod
    def from_json(cls, value: Any) -> "ResidentAuditState":
        if not isinstance(value, dict):
            return cls()
        return cls(
            row_statuses=_str_map(value.get("rowStatuses")),
            auditor_names=_str_map(value.get("auditorNames")),
            last_audited_dates=_str_map(value.get("lastAuditedDates")),
            due_dates=_str_map(value.get("dueDates")),
        )


class LocalCache:
    def __init__(self, backend: BaseCache):
        self.backend = backend

    # ----------------------------
    # JSON values
    # ----------------------------
    def get_json(self, key: str, default: Any = None) -> Any:
        raw = self.backend.get(key)
        if raw is None:
            return copy.deepcopy(default)
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            log.warning("Ignoring corrupt local cache value for {}: {}", key, e)
            return copy.deepcopy(default)

    def set_json(self, key: str, value: Any) -> None:
        self.backend.set(key, json.dumps(value, default=str), timeout=None)
        known = self.keys()
        if key not in known:
            self.backend.set(KEY_INDEX_KEY, sorted(known + [key]), timeout=None)

    def delete(self, key: str) -> None:
        self.backend.delete(key)
        known = self.keys()
        if key in known:
            known.remove(key)
            self.backend.set(KEY_INDEX_KEY, known, timeout=None)

    def keys(self) -> List[str]:
        known = self.backend.get(KEY_INDEX_KEY)
        if not isinstance(known, list):
            return []
        return [k for k in known if isinstance(k, str)]

    # ----------------------------
    # completed-audits
    # ----------------------------
    def completed_audits(self) -> List[Dict[str, Any]]:
        value = self.get_json(COMPLETED_AUDITS_KEY, [])
        if not isinstance(value, list):
            return []
        return [v for v in value if isinstance(v, dict)]

    def append_completed_audit(self, snapshot: Dict[str, Any]) -> List[Dict[str, Any]]:
        audits = self.completed_audits()
        audits.append(snapshot)
        self.set_json(COMPLETED_AUDITS_KEY, audits)
        return audits

    # ----------------------------
    # home-audit-{organizationId}-{category}
    # ----------------------------
    def home_audit_state(self, organization_id, category: str) -> HomeAuditState:
        return HomeAuditState.from_json(self.get_json(home_audit_key(organization_id, category)))

    def save_home_audit_state(self, organization_id, category: str, state: HomeAuditState) -> None:
        self.set_json(home_audit_key(organization_id, category), state.to_json())

    # ----------------------------
    # resident-audit-{residentId}
    # ----------------------------
    def resident_audit_state(self, resident_id) -> ResidentAuditState:
        return ResidentAuditState.from_json(self.get_json(resident_audit_key(resident_id)))

    def save_resident_audit_state(self, resident_id, state: ResidentAuditState) -> None:
        self.set_json(resident_audit_key(resident_id), state.to_json())


def default_cache() -> LocalCache:
    """The configured per-device cache; every call shares the same store."""
    return LocalCache(caches[settings.LOCAL_CACHE_ALIAS])
