"""
Telegram command handlers for the sniper worker control surface
"""

import json
import logging
from typing import Optional
from telegram import Update
from telegram.constants import ParseMode
from telegram.ext import ContextTypes

from monitor.scheduler import WorkerControl
from utils.formatting import format_stats_text

logger = logging.getLogger(__name__)


class WorkerCommands:
    """Thin adapters from Telegram commands to WorkerControl"""

    def __init__(self, control: WorkerControl, allowed_chat_id: Optional[str] = None):
        self.control = control
        self.allowed_chat_id = str(allowed_chat_id) if allowed_chat_id else None

    def _allowed(self, update: Update) -> bool:
        if self.allowed_chat_id is None:
            return True
        chat = update.effective_chat
        allowed = chat is not None and str(chat.id) == self.allowed_chat_id
        if not allowed:
            logger.warning(f"Ignoring command from unauthorized chat {chat.id if chat else None}")
        return allowed

    async def stats_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /stats command"""
        if not self._allowed(update):
            return
        await update.message.reply_text(format_stats_text(self.control.get_stats()), parse_mode=ParseMode.HTML)

    async def health_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /health command"""
        if not self._allowed(update):
            return
        await update.message.reply_text(json.dumps(self.control.health(), indent=2))

    async def mark_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /mark win|lose"""
        if not self._allowed(update):
            return
        args = context.args or []
        if not args or args[0].lower() not in ('win', 'lose'):
            await update.message.reply_text("Usage: /mark win|lose")
            return
        stats = self.control.mark_result(args[0].lower())
        await update.message.reply_text(f"✅ Recorded. Wins: {stats['wins']} / Losses: {stats['losses']}")

    async def test_alert_command(self, update: Update, context: ContextTypes.DEFAULT_TYPE):
        """Handle /testalert command"""
        if not self._allowed(update):
            return
        delivered = await self.control.send_test_alert()
        await update.message.reply_text("✅ Test alert sent" if delivered else "❌ Test alert not delivered")
