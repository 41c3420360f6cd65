import argparse
from datetime import datetime, timedelta

import pytest

import app
from booking_engine import Reservation
from errors import LoginError


@pytest.mark.parametrize(
    "value,expected",
    [
        ("2h", timedelta(hours=2)),
        ("90m", timedelta(minutes=90)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("25h", timedelta(hours=25)),
    ],
)
def test_parse_margin(value, expected):
    assert app.parse_margin(value) == expected


@pytest.mark.parametrize("value", ["", "two hours", "1d", "h"])
def test_parse_margin_rejects_garbage(value):
    with pytest.raises(argparse.ArgumentTypeError):
        app.parse_margin(value)


def test_next_full_hour():
    assert app.next_full_hour(datetime(2024, 5, 1, 9, 42, 10)) == datetime(2024, 5, 1, 10, 0)


def test_parser_reads_window():
    args = app.build_parser().parse_args(["--from", "2024-05-01T09:00", "--margin", "2h"])
    assert args.window_start == datetime(2024, 5, 1, 9, 0)
    assert args.margin == timedelta(hours=2)


class StubClient:
    def __init__(self, reservation=None, error=None):
        self.reservation = reservation
        self.error = error
        self.torn_down = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.torn_down = True

    async def login(self, email, password):
        if self.error:
            raise self.error

    async def reserve_tutor(self, window_start, margin):
        return self.reservation


class StubNotifier:
    def __init__(self):
        self.events = []

    async def reservation_success(self, reservation):
        self.events.append(("success", reservation.tutor_name))

    async def reservation_failed(self, window_start, error_message):
        self.events.append(("failed", error_message))


@pytest.mark.asyncio
async def test_run_reports_success(monkeypatch, tmp_path):
    reservation = Reservation.for_slot("Alice", datetime(2024, 5, 1, 9, 0), 25)
    client = StubClient(reservation=reservation)
    notifier = StubNotifier()
    monkeypatch.setattr(app, "ReservationClient", lambda: client)
    monkeypatch.setattr(app, "notifier", notifier)
    monkeypatch.setattr(app.settings, "calendar_dir", tmp_path)

    code = await app.run(datetime(2024, 5, 1, 9, 0), timedelta(hours=2))

    assert code == 0
    assert client.torn_down
    assert notifier.events == [("success", "Alice")]
    assert (tmp_path / "rarejob_lesson_2024-05-01_0900.ics").exists()


@pytest.mark.asyncio
async def test_run_reports_failure(monkeypatch):
    client = StubClient(error=LoginError("login failed"))
    notifier = StubNotifier()
    monkeypatch.setattr(app, "ReservationClient", lambda: client)
    monkeypatch.setattr(app, "notifier", notifier)

    code = await app.run(datetime(2024, 5, 1, 9, 0), timedelta(hours=2))

    assert code == 1
    assert client.torn_down
    assert notifier.events == [("failed", "login failed")]
