"""Background alert scanner."""
import asyncio
from contextlib import contextmanager

from app.models.alert import Alert
from app.services import alert_scheduler
from conftest import make_medicine


def test_scan_uses_detector(db, monkeypatch):
    @contextmanager
    def test_scope():
        yield db

    monkeypatch.setattr(alert_scheduler, "session_scope", test_scope)
    make_medicine(db, name="Empty", quantity=0)

    assert alert_scheduler.scan_alerts() == 1
    assert alert_scheduler.scan_alerts() == 0
    assert db.query(Alert).count() == 1


def test_scan_failure_is_logged_not_raised(monkeypatch):
    @contextmanager
    def broken_scope():
        raise RuntimeError("database is locked")
        yield  # pragma: no cover

    monkeypatch.setattr(alert_scheduler, "session_scope", broken_scope)
    assert alert_scheduler.scan_alerts() == 0


def test_loop_runs_until_stopped(monkeypatch):
    runs = []
    monkeypatch.setattr(alert_scheduler, "scan_alerts", lambda: runs.append(1) or 0)

    async def scenario():
        alert_scheduler.start_alert_scheduler(interval=0.03, initial_delay=0)
        await asyncio.sleep(0.1)
        alert_scheduler.stop_alert_scheduler()
        count = len(runs)
        await asyncio.sleep(0.06)
        return count

    count = asyncio.run(scenario())
    assert count >= 2
    assert len(runs) <= count + 1
