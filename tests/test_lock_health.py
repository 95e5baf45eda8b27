"""Tests for docmost_sync.lock and docmost_sync.health."""

import os

import httpx
import pytest

from docmost_sync.errors import LockError
from docmost_sync.health import (
    DEGRADED,
    HEALTHY,
    UNHEALTHY,
    HealthChecker,
    HealthServer,
    HealthStatus,
    parse_address,
)
from docmost_sync.lock import FileLock

# -------------------------------------------------------------------------
# FileLock
# -------------------------------------------------------------------------


class TestFileLock:
    def test_acquire_writes_pid(self, tmp_path):
        path = tmp_path / "sync.lock"
        lock = FileLock(path)
        lock.acquire()
        try:
            assert lock.locked
            assert path.read_text().strip() == str(os.getpid())
        finally:
            lock.release()
        assert not lock.locked
        assert not path.exists()

    def test_second_instance_refused(self, tmp_path):
        path = tmp_path / "sync.lock"
        with FileLock(path):
            with pytest.raises(LockError, match="already running"):
                FileLock(path).acquire()

    def test_reacquire_after_release(self, tmp_path):
        path = tmp_path / "sync.lock"
        with FileLock(path):
            pass
        with FileLock(path) as lock:
            assert lock.locked

    def test_unwritable_location(self, tmp_path):
        with pytest.raises(LockError, match="failed to open lock file"):
            FileLock(tmp_path / "missing" / "sync.lock").acquire()

    def test_release_is_idempotent(self, tmp_path):
        lock = FileLock(tmp_path / "sync.lock")
        lock.release()
        lock.acquire()
        lock.release()
        lock.release()


# -------------------------------------------------------------------------
# HealthChecker
# -------------------------------------------------------------------------


class FakeClock:
    def __init__(self, now=1_700_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


class TestHealthChecker:
    def test_healthy_before_first_sync(self):
        status = HealthChecker(60, clock=FakeClock()).status()
        assert status.status == HEALTHY
        assert status.sync_count == 0
        assert status.last_sync is None
        assert status.sync_interval == "1m0s"

    def test_failed_sync_degrades(self):
        checker = HealthChecker(clock=FakeClock())
        checker.update_sync_status(RuntimeError("login failed"))
        status = checker.status()
        assert status.status == DEGRADED
        assert status.last_error == "login failed"
        assert status.sync_count == 1

    def test_success_clears_error(self):
        checker = HealthChecker(clock=FakeClock())
        checker.update_sync_status(RuntimeError("x"))
        checker.update_sync_status(None)
        status = checker.status()
        assert status.status == HEALTHY
        assert status.last_error is None

    def test_next_sync_and_staleness(self):
        clock = FakeClock()
        checker = HealthChecker(60, clock=clock)
        checker.update_sync_status()

        clock.now += 10
        assert checker.status().next_sync == "50s"

        clock.now += 111
        status = checker.status()
        assert status.status == UNHEALTHY
        assert status.next_sync is None

    def test_one_shot_never_stale(self):
        clock = FakeClock()
        checker = HealthChecker(None, clock=clock)
        checker.update_sync_status()
        clock.now += 10_000
        assert checker.status().status == HEALTHY

    def test_running_flag(self):
        checker = HealthChecker(clock=FakeClock())
        checker.set_running(True)
        assert checker.status().is_running

    def test_to_dict_omits_unset(self):
        status = HealthStatus(status=HEALTHY, sync_count=0, is_running=False, uptime="0s")
        assert status.to_dict() == {
            "status": HEALTHY,
            "sync_count": 0,
            "is_running": False,
            "uptime": "0s",
        }


# -------------------------------------------------------------------------
# HealthServer
# -------------------------------------------------------------------------


class TestParseAddress:
    @pytest.mark.parametrize(
        "address, expected",
        [
            (":8080", ("0.0.0.0", 8080)),
            ("8080", ("0.0.0.0", 8080)),
            ("127.0.0.1:9000", ("127.0.0.1", 9000)),
        ],
    )
    def test_valid(self, address, expected):
        assert parse_address(address) == expected

    def test_invalid(self):
        with pytest.raises(ValueError, match="invalid listen address"):
            parse_address("localhost:http")


class TestHealthServer:
    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def server(self, clock):
        checker = HealthChecker(60, clock=clock)
        server = HealthServer(checker, "127.0.0.1:0")
        server.start()
        yield server
        server.stop()

    @pytest.mark.parametrize("path", ["/health", "/healthz", "/ready"])
    def test_health_paths(self, server, path):
        response = httpx.get(f"http://127.0.0.1:{server.port}{path}", trust_env=False)
        assert response.status_code == 200
        assert response.headers["content-type"] == "application/json"
        assert response.json()["status"] == HEALTHY

    def test_unknown_path(self, server):
        response = httpx.get(f"http://127.0.0.1:{server.port}/metrics", trust_env=False)
        assert response.status_code == 404

    def test_unhealthy_returns_503(self, server, clock):
        server.checker.update_sync_status()
        clock.now += 1000
        response = httpx.get(f"http://127.0.0.1:{server.port}/health", trust_env=False)
        assert response.status_code == 503
        assert response.json()["status"] == UNHEALTHY

    def test_stop_twice(self, server):
        server.stop()
        server.stop()
        assert server.port is None
