import logging
import asyncio
from typing import Optional
from telegram import Bot
from telegram.constants import ParseMode
from telegram.error import TelegramError

logger = logging.getLogger("notifier")


class TelegramNotifier:
    """Delivers alert HTML to a single chat; never raises on delivery failure"""

    def __init__(self, token: Optional[str], chat_id: Optional[str], bot: Bot = None, rate_limit: float = 1.0):
        self.chat_id = chat_id
        self.bot = bot or (Bot(token=token) if token else None)
        self.rate_limit = rate_limit
        self.last_sent = 0.0
        self.last_error: Optional[str] = None

    @property
    def configured(self) -> bool:
        return self.bot is not None and bool(self.chat_id)

    async def send(self, text: str) -> bool:
        self.last_error = None
        if not self.configured:
            logger.warning("Telegram not configured, skipping send")
            return False

        now = asyncio.get_running_loop().time()
        if now - self.last_sent < self.rate_limit:
            await asyncio.sleep(self.rate_limit - (now - self.last_sent))
        self.last_sent = asyncio.get_running_loop().time()

        try:
            await self.bot.send_message(chat_id=self.chat_id, text=text, parse_mode=ParseMode.HTML)
            return True
        except TelegramError as e:
            logger.error(f"Telegram send error: {e}")
            self.last_error = str(e)
            return False
        except (OSError, asyncio.TimeoutError) as e:
            logger.error(f"Telegram network error: {e}")
            self.last_error = str(e) or e.__class__.__name__
            return False
