from datetime import datetime

import pytest

from booking_engine import Reservation
from notifications import DiscordNotifier


@pytest.mark.asyncio
async def test_send_message_skipped_without_webhook():
    notifier = DiscordNotifier(webhook_url=None)
    assert await notifier.send_message("hello") is False


@pytest.mark.asyncio
async def test_reservation_success_attaches_invite(monkeypatch):
    notifier = DiscordNotifier(webhook_url="https://discord.test/webhook")
    sent = {}

    async def fake_send(content, embeds=None, username="", files=None):
        sent.update(content=content, embeds=embeds, files=files)
        return True

    monkeypatch.setattr(notifier, "send_message", fake_send)
    reservation = Reservation.for_slot("Alice", datetime(2024, 5, 1, 9, 0), 25)

    assert await notifier.reservation_success(reservation) is True
    assert list(sent["files"]) == ["rarejob_lesson_2024-05-01_0900.ics"]
    fields = {f["name"]: f["value"] for f in sent["embeds"][0]["fields"]}
    assert fields["Tutor"] == "Alice"
    assert fields["Time"] == "09:00-09:25"


@pytest.mark.asyncio
async def test_reservation_failed_reports_error(monkeypatch):
    notifier = DiscordNotifier(webhook_url="https://discord.test/webhook")
    sent = {}

    async def fake_send(content, embeds=None, username="", files=None):
        sent.update(embeds=embeds)
        return True

    monkeypatch.setattr(notifier, "send_message", fake_send)

    await notifier.reservation_failed(datetime(2024, 5, 1, 9, 0), "login failed")

    fields = {f["name"]: f["value"] for f in sent["embeds"][0]["fields"]}
    assert fields == {"Window Start": "2024-05-01 09:00", "Error": "login failed"}
