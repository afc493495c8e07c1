# ch_core/local_cache/tests/test_store.py
import uuid

import pytest
from django.core.cache import caches
from django.core.cache.backends.filebased import FileBasedCache
from django.core.cache.backends.locmem import LocMemCache
from django.core.management import call_command
from django.core.management.base import CommandError

from ch_core.local_cache.store import (
    COMPLETED_AUDITS_KEY,
    HomeAuditState,
    LocalCache,
    ResidentAuditState,
    default_cache,
    home_audit_key,
    resident_audit_key,
)


def _file_caches(location):
    return {
        "default": {"BACKEND": "django.core.cache.backends.locmem.LocMemCache"},
        "local_checklists": {
            "BACKEND": "django.core.cache.backends.filebased.FileBasedCache",
            "LOCATION": str(location),
            "TIMEOUT": None,
        },
    }


@pytest.fixture(autouse=True)
def _clear_configured_cache(settings):
    yield
    caches[settings.LOCAL_CACHE_ALIAS].clear()


@pytest.fixture(params=["memory", "file"])
def cache(request, tmp_path):
    if request.param == "memory":
        return LocalCache(LocMemCache(f"test-{uuid.uuid4()}", {"TIMEOUT": None}))
    return LocalCache(FileBasedCache(str(tmp_path / "cache"), {"TIMEOUT": None}))


def test_keys():
    org = uuid.UUID("00000000-0000-0000-0000-000000000001")
    assert home_audit_key(org, "kitchen") == "home-audit-00000000-0000-0000-0000-000000000001-kitchen"
    assert resident_audit_key("r-1") == "resident-audit-r-1"


def test_missing_values_read_as_defaults(cache):
    assert cache.completed_audits() == []
    state = cache.home_audit_state("org", "kitchen")
    assert state.row_statuses == {}
    assert state.status_for(3) == "pending"
    assert state.auditor_for(3) == ""


def test_completed_audits_append(cache):
    cache.append_completed_audit({"templateName": "Kitchen", "completedAt": "2024-03-05"})
    cache.append_completed_audit({"templateName": "Laundry"})

    assert [a["templateName"] for a in cache.completed_audits()] == ["Kitchen", "Laundry"]


def test_home_audit_state_round_trip(cache):
    state = HomeAuditState()
    state.set_row(0, status="completed", auditor_name="J. Smith")
    state.set_row(2, status="overdue")
    cache.save_home_audit_state("org", "kitchen", state)

    loaded = cache.home_audit_state("org", "kitchen")
    assert loaded.status_for(0) == "completed"
    assert loaded.auditor_for(0) == "J. Smith"
    assert loaded.status_for(2) == "overdue"
    assert loaded.status_for(1) == "pending"

    # Categories are independent.
    assert cache.home_audit_state("org", "laundry").row_statuses == {}


def test_resident_audit_state_keeps_dates(cache):
    state = ResidentAuditState()
    state.set_row(1, status="in-progress")
    state.last_audited_dates["1"] = "2024-03-01"
    state.due_dates["1"] = "2024-06-01"
    cache.save_resident_audit_state("res-1", state)

    raw = cache.get_json(resident_audit_key("res-1"))
    assert raw["lastAuditedDates"] == {"1": "2024-03-01"}
    assert raw["dueDates"] == {"1": "2024-06-01"}

    loaded = cache.resident_audit_state("res-1")
    assert loaded.status_for(1) == "in-progress"
    assert loaded.due_dates == {"1": "2024-06-01"}


def test_corrupt_values_fall_back_to_defaults(cache):
    cache.backend.set(COMPLETED_AUDITS_KEY, "{not json")
    cache.backend.set(home_audit_key("org", "kitchen"), '["wrong", "shape"]')
    cache.backend.set(resident_audit_key("res-1"), '{"rowStatuses": "nope", "dueDates": {"1": "2024-06-01"}}')

    assert cache.completed_audits() == []
    assert cache.home_audit_state("org", "kitchen").row_statuses == {}

    resident = cache.resident_audit_state("res-1")
    assert resident.row_statuses == {}
    assert resident.due_dates == {"1": "2024-06-01"}


def test_delete(cache):
    cache.set_json("completed-audits", [{"a": 1}])
    cache.delete("completed-audits")
    cache.delete("never-written")
    assert cache.get_json("completed-audits") is None
    assert cache.keys() == []


def test_keys_lists_written_entries(cache):
    cache.append_completed_audit({"templateName": "Kitchen"})
    cache.save_home_audit_state("org", "kitchen", HomeAuditState())
    cache.append_completed_audit({"templateName": "Laundry"})

    assert cache.keys() == ["completed-audits", "home-audit-org-kitchen"]


def test_file_cache_survives_restart(tmp_path):
    first = LocalCache(FileBasedCache(str(tmp_path), {"TIMEOUT": None}))
    first.append_completed_audit({"templateName": "Kitchen"})

    second = LocalCache(FileBasedCache(str(tmp_path), {"TIMEOUT": None}))
    assert second.completed_audits() == [{"templateName": "Kitchen"}]
    assert second.keys() == ["completed-audits"]


def test_default_cache_is_shared_between_calls():
    assert isinstance(default_cache().backend, LocMemCache)

    default_cache().append_completed_audit({"templateName": "Kitchen"})
    assert default_cache().completed_audits() == [{"templateName": "Kitchen"}]


def test_default_cache_uses_configured_dir(settings, tmp_path):
    settings.CACHES = _file_caches(tmp_path)
    assert isinstance(default_cache().backend, FileBasedCache)


def test_management_command(settings, tmp_path, capsys):
    settings.CACHES = _file_caches(tmp_path)
    default_cache().append_completed_audit({"templateName": "Kitchen"})

    call_command("local_cache", "--list")
    assert "completed-audits" in capsys.readouterr().out

    call_command("local_cache", "--show", "completed-audits")
    assert "Kitchen" in capsys.readouterr().out

    call_command("local_cache", "--clear", "completed-audits")
    assert default_cache().completed_audits() == []

    with pytest.raises(CommandError):
        call_command("local_cache", "--show", "completed-audits")


def test_management_command_needs_file_cache():
    with pytest.raises(CommandError, match="LOCAL_CACHE_DIR"):
        call_command("local_cache", "--list")
