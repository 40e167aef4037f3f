"""
Startup wiring: builds the fetcher, integrations, scan context and loop from Config
"""

import logging
from dataclasses import dataclass
from typing import Optional

from config import Config, ScannerSettings
from integrations.base import ThrottledFetcher
from integrations.solana_rpc import SolanaRPCClient
from integrations.dexscreener import DexScreenerClient
from utils.cache import ExpiringCache
from utils.formatting import format_startup_notice
from services.holder_inspector import HolderInspector
from services.dev_sold import DevSoldDetector
from services.volume_spike import VolumeSpikeDetector
from monitor.stats import RunStatistics, SnapshotWriter
from monitor.discoverer import CandidateDiscoverer
from monitor.pipeline import EvaluationPipeline, ScanContext, publish
from monitor.scheduler import ScannerLoop, WorkerControl
from bot.notifier import TelegramNotifier

logger = logging.getLogger(__name__)


@dataclass
class Worker:
    fetcher: ThrottledFetcher
    ctx: ScanContext
    loop: ScannerLoop
    control: WorkerControl
    snapshot: SnapshotWriter
    command_app: Optional[object] = None

    async def announce_startup(self):
        if not (self.ctx.notifier and self.ctx.notifier.configured):
            logger.warning("Telegram not configured - set TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID in .env")
            return
        try:
            await publish(self.ctx, format_startup_notice())
        except Exception as e:
            logger.warning(f"Startup notice failed: {e}")

    async def shutdown(self):
        self.loop.stop()
        await self.snapshot.flush()
        await self.fetcher.close()


def build_worker(config=Config) -> Worker:
    """Initialize all integrations and services"""
    logger.info("🔄 Initializing sniper worker...")
    settings = ScannerSettings.from_config(config)

    fetcher = ThrottledFetcher(
        min_interval=config.FETCH_MIN_INTERVAL_MS / 1000.0,
        max_retries=config.FETCH_MAX_RETRIES,
        backoff_cap=config.FETCH_BACKOFF_CAP_MS / 1000.0,
        timeout=config.REQUEST_TIMEOUT,
    )
    ledger = SolanaRPCClient(fetcher, config.SOLANA_RPC_URL)
    market = DexScreenerClient(fetcher, config.DEXSCREENER_API_URL)
    logger.info(f"✅ Ledger client: {config.SOLANA_RPC_URL}")

    snapshot = SnapshotWriter(config.STATS_FILE)
    stats = RunStatistics(log_cap=config.ALERT_LOG_CAP, writer=snapshot)
    stats.restore(snapshot.load())

    cache = ExpiringCache(ttl=settings.cache_ttl)
    ctx = ScanContext(
        settings=settings,
        cache=cache,
        stats=stats,
        inspector=HolderInspector(ledger, cache),
        dev_sold=DevSoldDetector(ledger, cache),
        volume=VolumeSpikeDetector(market, cache),
        notifier=TelegramNotifier(config.TELEGRAM_BOT_TOKEN, config.TELEGRAM_CHAT_ID),
    )

    discoverer = CandidateDiscoverer(ledger, ctx.seen, program_id=config.DISCOVERY_PROGRAM_ID)
    logger.info(f"✅ Discovering mints on {config.DISCOVERY_PROGRAM_ID}")
    loop = ScannerLoop(ctx, discoverer, EvaluationPipeline(ctx))
    control = WorkerControl(ctx, loop)

    command_app = None
    if config.TELEGRAM_COMMANDS_ENABLED and config.TELEGRAM_BOT_TOKEN:
        from bot.commands import WorkerCommands
        from bot.handlers import build_command_application
        command_app = build_command_application(
            config.TELEGRAM_BOT_TOKEN, WorkerCommands(control, config.TELEGRAM_CHAT_ID)
        )
        logger.info("✅ Telegram command surface enabled")

    return Worker(fetcher=fetcher, ctx=ctx, loop=loop, control=control,
                  snapshot=snapshot, command_app=command_app)
