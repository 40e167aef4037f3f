"""
Scanner loop: discovery -> evaluation on a fixed interval

One logical driver issues all work, candidates are evaluated one at a time
so the shared ThrottledFetcher keeps its single-flight discipline. Nothing
raised inside a cycle stops the loop.
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional

from utils.formatting import format_test_alert
from monitor.discoverer import CandidateDiscoverer
from monitor.pipeline import EvaluationOutcome, EvaluationPipeline, ScanContext, publish

logger = logging.getLogger(__name__)


def _describe(error: BaseException) -> str:
    return str(error) or error.__class__.__name__


class ScannerLoop:
    def __init__(self, ctx: ScanContext, discoverer: CandidateDiscoverer, pipeline: EvaluationPipeline):
        self.ctx = ctx
        self.discoverer = discoverer
        self.pipeline = pipeline
        self.cycles = 0
        self._stop = asyncio.Event()

    @property
    def is_running(self) -> bool:
        return self.ctx.stats.scanner_on

    def stop(self):
        self._stop.set()

    async def run_forever(self):
        settings = self.ctx.settings
        logger.info(f"Starting main loop (interval={settings.check_interval}s, "
                    f"max_tokens_per_cycle={settings.max_tokens_per_cycle})")
        self._stop.clear()
        self.ctx.stats.set_scanner_on(True)
        try:
            while not self._stop.is_set():
                try:
                    await self.run_cycle()
                except Exception as e:
                    logger.error(f"Main loop error: {e}", exc_info=True)
                    self.ctx.stats.set_error(_describe(e))
                try:
                    await asyncio.wait_for(self._stop.wait(), timeout=settings.check_interval)
                except asyncio.TimeoutError:
                    pass
        finally:
            self.ctx.stats.set_scanner_on(False)
            logger.info("Main loop stopped")

    async def run_cycle(self) -> List[EvaluationOutcome]:
        ctx = self.ctx
        self.cycles += 1
        ctx.stats.mark_run()

        candidates = await self.discoverer.discover(ctx.settings.max_tokens_per_cycle)
        outcomes = []
        for mint in candidates:
            if mint in ctx.seen:
                continue
            ctx.seen.add(mint)
            ctx.stats.increment_scanned()
            outcome = await self.process_candidate(mint)
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    async def process_candidate(self, mint: str) -> Optional[EvaluationOutcome]:
        try:
            return await self.pipeline.evaluate(mint)
        except Exception as e:
            logger.error(f"Candidate {mint} failed: {e}", exc_info=True)
            self.ctx.stats.set_error(_describe(e))
            return None


class WorkerControl:
    """Operations exposed to the control surface (stats, win/loss marks, test alerts)"""

    def __init__(self, ctx: ScanContext, loop: ScannerLoop):
        self.ctx = ctx
        self.loop = loop

    @property
    def is_running(self) -> bool:
        return self.loop.is_running

    def get_stats(self) -> Dict:
        return self.ctx.stats.snapshot()

    def health(self) -> Dict:
        stats = self.ctx.stats.snapshot()
        return {
            'ok': True,
            'time': int(time.time() * 1000),
            'scanned': stats['scanned'],
            'lastError': stats['lastError'],
            'scannerOn': stats['scannerOn'],
        }

    def mark_result(self, result: str) -> Dict:
        if not self.ctx.stats.mark_result(result):
            logger.warning(f"Ignoring unknown result mark {result!r}")
        return self.get_stats()

    async def send_test_alert(self) -> bool:
        return await publish(self.ctx, format_test_alert())
