#!/usr/bin/env python3
"""
Startup script for the sniper worker
"""

import asyncio
import logging
import platform
import signal
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(),
        logging.FileHandler('worker.log')
    ]
)

logger = logging.getLogger(__name__)


async def run():
    from config import Config
    from startup import build_worker

    Config.validate()
    worker = build_worker(Config)

    loop = asyncio.get_running_loop()
    if platform.system() != "Windows":
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, worker.loop.stop)

    app = worker.command_app
    if app is not None:
        await app.initialize()
        await app.start()
        await app.updater.start_polling()
        logger.info("Telegram command polling started")

    try:
        await worker.announce_startup()
        await worker.loop.run_forever()
    finally:
        if app is not None:
            await app.updater.stop()
            await app.stop()
            await app.shutdown()
        await worker.shutdown()
        logger.info("Worker shut down")


def main():
    """Main startup function"""
    logger.info("Starting sniper worker...")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
