"""Discord webhook notifications."""
import json
import httpx
import logging
from typing import Optional, Dict
from datetime import datetime, timezone
from io import BytesIO
from config import settings
from calendar_utils import calendar_generator

logger = logging.getLogger(__name__)


class DiscordNotifier:
    """Send notifications via Discord webhook."""

    def __init__(self, webhook_url: Optional[str] = settings.discord_webhook_url):
        self.webhook_url = webhook_url

    async def send_message(
        self,
        content: str,
        embeds: Optional[list] = None,
        username: str = "RareJob Reservation Bot",
        files: Optional[Dict[str, BytesIO]] = None
    ) -> bool:
        """
        Send a message to Discord.

        Args:
            content: Message content
            embeds: List of embed objects
            username: Bot username to display
            files: Optional dict of filename -> BytesIO file data for attachments

        Returns:
            True if message sent successfully, False otherwise
        """
        if not self.webhook_url:
            logger.debug("No Discord webhook configured, skipping notification")
            return False

        try:
            payload = {
                "username": username,
                "content": content,
            }
            if embeds:
                payload["embeds"] = embeds

            async with httpx.AsyncClient() as client:
                if files:
                    files_data = {}
                    for idx, (filename, file_data) in enumerate(files.items()):
                        file_data.seek(0)
                        files_data[f'files[{idx}]'] = (filename, file_data, 'text/calendar')

                    response = await client.post(
                        self.webhook_url,
                        data={'payload_json': json.dumps(payload)},
                        files=files_data,
                        timeout=10.0
                    )
                else:
                    response = await client.post(
                        self.webhook_url,
                        json=payload,
                        timeout=10.0
                    )

                response.raise_for_status()
                logger.info("Discord notification sent successfully")
                return True

        except httpx.HTTPError as e:
            logger.error(f"Failed to send Discord notification: {e}")
            return False

    async def reservation_success(self, reservation):
        """Notify about a reserved lesson with calendar invite attachment."""
        embed = {
            "title": "✅ Lesson Reserved!",
            "color": 3066993,  # Green
            "fields": [
                {"name": "Tutor", "value": reservation.tutor_name, "inline": False},
                {"name": "Date", "value": f"{reservation.start_at:%Y-%m-%d}", "inline": True},
                {"name": "Time", "value": f"{reservation.start_at:%H:%M}-{reservation.end_at:%H:%M}", "inline": True},
            ],
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        files = None
        try:
            ics_file = calendar_generator.generate_ics(reservation)
            filename = calendar_generator.generate_filename(reservation)
            files = {filename: ics_file}
            embed["fields"].append(
                {"name": "📅 Calendar", "value": "Download the attached .ics file to add to your calendar", "inline": False}
            )
        except ValueError as e:
            # Send the notification without the invite
            logger.error(f"Failed to generate calendar invite: {e}", exc_info=True)

        return await self.send_message(
            content="📚 **RareJob lesson reserved**",
            embeds=[embed],
            files=files
        )

    async def reservation_failed(self, window_start: datetime, error_message: str):
        """Notify about a failed reservation run."""
        embed = {
            "title": "❌ Reservation Failed",
            "color": 15158332,  # Red
            "fields": [
                {"name": "Window Start", "value": f"{window_start:%Y-%m-%d %H:%M}", "inline": True},
                {"name": "Error", "value": error_message[:1000], "inline": False},
            ],
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

        return await self.send_message(
            content="⚠️ **Failed to reserve a RareJob lesson**",
            embeds=[embed]
        )


# Global notifier instance
notifier = DiscordNotifier()
