"""
Bot event handlers registration module
"""

import logging
from typing import Callable, List, Tuple
from telegram.ext import Application, CommandHandler

from bot.commands import WorkerCommands

logger = logging.getLogger(__name__)


def register_bot_handlers(app: Application, commands: WorkerCommands) -> bool:
    """
    Register all bot command handlers
    Returns True if successful, False if any errors occurred
    """
    command_list: List[Tuple[str, Callable]] = [
        ("stats", commands.stats_command),
        ("health", commands.health_command),
        ("mark", commands.mark_command),
        ("testalert", commands.test_alert_command),
    ]

    for cmd_name, handler in command_list:
        try:
            logger.info(f"Registering command handler: /{cmd_name}")
            app.add_handler(CommandHandler(cmd_name, handler))
        except Exception as e:
            logger.error(f"Failed to register /{cmd_name} command: {e}")
            return False

    logger.info(f"Successfully registered {len(command_list)} commands")
    return True


def build_command_application(token: str, commands: WorkerCommands) -> Application:
    app = Application.builder().token(token).build()
    register_bot_handlers(app, commands)
    return app
