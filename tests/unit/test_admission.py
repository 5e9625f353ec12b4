from unittest.mock import patch

import pytest

from echosphere.client.admission import AdmissionController
from echosphere.client.session import ClientSession
from echosphere.client.storage import JsonFileStore, MemoryStore


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def session():
    return ClientSession(store=MemoryStore())


@pytest.fixture
def controller(session, clock):
    return AdmissionController(session, max_requests=3, window_seconds=60, clock=clock)


def test_empty_window_allows(controller):
    assert controller.check() is True
    assert controller.time_until_reset() == 0


def test_fourth_action_in_window_is_blocked(controller, clock):
    for _ in range(3):
        assert controller.check()
        controller.record()
        clock.advance(1)
    assert controller.check() is False


def test_check_is_read_only(controller, session):
    controller.check()
    assert session.store.get(session.rate_limit_key) is None


def test_window_slides(controller, clock):
    for _ in range(3):
        controller.record()
        clock.advance(10)
    assert controller.check() is False
    # The first timestamp is now 60 s old and drops out
    clock.advance(30)
    assert controller.check() is True


def test_time_until_reset_uses_oldest_timestamp(controller, clock):
    controller.record()
    clock.advance(20.5)
    controller.record()
    assert controller.time_until_reset() == 40  # ceil(39.5)


def test_time_until_reset_is_monotone(controller, clock):
    for _ in range(3):
        controller.record()
    previous = controller.time_until_reset()
    for _ in range(70):
        clock.advance(1)
        current = controller.time_until_reset()
        assert current <= previous
        assert current >= 0
        previous = current
    assert previous == 0


def test_record_prunes_expired_entries(controller, session, clock):
    controller.record()
    clock.advance(61)
    controller.record()
    stored = session.store.get(session.rate_limit_key)
    assert len(stored["timestamps"]) == 1


@pytest.mark.parametrize("corrupt", ["garbage", {"timestamps": "nope"}, {"other": 1}, [1, 2]])
def test_corrupt_storage_fails_open(session, clock, corrupt):
    session.store.set(session.rate_limit_key, corrupt)
    controller = AdmissionController(session, max_requests=1, window_seconds=60, clock=clock)
    assert controller.check() is True
    assert controller.time_until_reset() == 0
    controller.record()
    assert controller.check() is False


def test_unreadable_file_fails_open(tmp_path, clock):
    path = tmp_path / "store.json"
    path.write_text("{not json")
    session = ClientSession(store=JsonFileStore(path))
    controller = AdmissionController(session, max_requests=3, window_seconds=60, clock=clock)
    assert controller.check() is True
    controller.record()
    assert controller.time_until_reset() == 60


def test_window_survives_reopen(tmp_path, clock):
    path = tmp_path / "store.json"
    first = AdmissionController(ClientSession.open(path), max_requests=1, window_seconds=60, clock=clock)
    first.record()

    second = AdmissionController(ClientSession.open(path), max_requests=1, window_seconds=60, clock=clock)
    assert second.check() is False


def test_reset_clears_window(controller, session):
    for _ in range(3):
        controller.record()
    session.current_organization_id = "org1"
    session.reset()
    assert controller.check() is True
    assert session.current_organization_id is None


def test_settings_read_once_per_session(clock):
    with patch("echosphere.client.session.get_settings") as settings:
        settings.return_value.rate_limit.storage_key = "window"
        session = ClientSession(store=MemoryStore())
        controller = AdmissionController(session, max_requests=1, window_seconds=60, clock=clock)
        controller.record()
        assert controller.check() is False
        assert controller.time_until_reset() == 60
        session.reset()

    assert settings.call_count == 1
    assert session.rate_limit_key == "window"
    assert session.store.get("window") is None
