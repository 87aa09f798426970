"""Tests for the scheduled archival worker."""

import logging
from datetime import date, datetime, timezone

from mealplanner.models import AuditLog
from mealplanner.services.archival_service import RetentionPolicy
from mealplanner.worker import run_scheduled_sweep

_POLICY = RetentionPolicy(enabled=True, schedule_hour=2)


def test_runs_at_scheduled_hour():
    now = datetime(2026, 10, 19, 2, 5, tzinfo=timezone.utc)
    assert run_scheduled_sweep(now, None, _POLICY) == date(2026, 10, 19)


def test_runs_once_per_day(db):
    now = datetime(2026, 10, 19, 2, 35, tzinfo=timezone.utc)
    last = run_scheduled_sweep(now, date(2026, 10, 19), _POLICY)
    assert last == date(2026, 10, 19)
    assert db.query(AuditLog).filter(AuditLog.action == "archival_run").count() == 0


def test_skips_outside_schedule():
    now = datetime(2026, 10, 19, 14, 0, tzinfo=timezone.utc)
    assert run_scheduled_sweep(now, None, _POLICY) is None


def test_disabled_never_runs():
    now = datetime(2026, 10, 19, 2, 0, tzinfo=timezone.utc)
    assert run_scheduled_sweep(now, None, RetentionPolicy(enabled=False)) is None


def test_scheduled_sweep_is_audited(db):
    run_scheduled_sweep(datetime(2026, 10, 20, 2, 0, tzinfo=timezone.utc), None, _POLICY)
    entry = db.query(AuditLog).filter(AuditLog.action == "archival_run").one()
    assert entry.user_id == "system"
    assert entry.details["trigger"] == "scheduled"


def test_logs_archived_row_count(db, caplog):
    caplog.set_level(logging.INFO, logger="worker")
    run_scheduled_sweep(datetime(2026, 10, 21, 2, 0, tzinfo=timezone.utc), None, _POLICY)
    assert "Scheduled archival complete: 0 row(s)" in caplog.text
