"""Telegram sink for lifecycle events."""
import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig
from ..models import EventName, LifecycleEvent

logger = logging.getLogger(__name__)

_EVENT_TITLES = {
    EventName.LOAN_OPENED: "🏦 Loan opened",
    EventName.LOAN_CLOSED: "✅ Loan closed",
    EventName.COLLATERAL_ADDED: "➕ Collateral added",
    EventName.COLLATERAL_REMOVED: "➖ Collateral removed",
    EventName.DEBT_ADDED: "➕ Debt added",
    EventName.DEBT_REMOVED: "➖ Debt removed",
    EventName.INVESTMENT_ADDED: "📈 Investment added",
    EventName.INVESTMENT_REMOVED: "📉 Investment removed",
}


def _format_wallet(address: str) -> str:
    if len(address) > 16:
        return f"{address[:10]}...{address[-6:]}"
    return address


def format_event(event: LifecycleEvent) -> str:
    """Render an event as a short Telegram message."""
    lines = [_EVENT_TITLES.get(event.name, event.name.value), ""]
    lines.append(f"Wallet: {_format_wallet(event.wallet)}")
    for key, value in event.params.items():
        lines.append(f"{key}: {value}")
    return "\n".join(lines)


class TelegramNotifier:
    """Post lifecycle events through a Telegram bot."""

    def __init__(self, config: TelegramConfig) -> None:
        self.bot_token = config.bot_token
        self.chat_id = config.chat_id
        self.silent = config.silent

    async def send_message(self, message: str) -> bool:
        if not self.bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        url = f"https://api.telegram.org/bot{self.bot_token}/sendMessage"
        payload = {
            "chat_id": self.chat_id,
            "text": message,
            "disable_notification": self.silent,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        async with aiohttp.ClientSession(connector=connector) as session:
            async with session.post(url, json=payload) as response:
                if response.status == 200:
                    return True
                logger.error("Failed to send Telegram message: %s", response.status)
                return False

    async def publish(self, event: LifecycleEvent) -> None:
        if await self.send_message(format_event(event)):
            logger.info("Telegram notification sent for %s", event.name.value)
