"""
Candidate evaluation pipeline

Gates run in a fixed order and the first failing gate ends evaluation:

    dev must have sold -> top-10 concentration -> minimum holders

A candidate that passes every gate is scored, rendered and handed to the
notifier. Every skip and every alert lands in the run statistics log.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from config import ScannerSettings
from utils.cache import ExpiringCache
from utils.formatting import format_alert_html, format_pct
from monitor.stats import RunStatistics, strip_tags
from services.holder_inspector import Holder, HolderInspector
from services.dev_sold import DevSoldDetector
from services.volume_spike import VolumeSpikeDetector

logger = logging.getLogger(__name__)

SKIP_NOT_SOLD = 'SKIP_NOT_SOLD'
SKIP_TOP10 = 'SKIP_TOP10'
SKIP_HOLDERS = 'SKIP_HOLDERS'

AI_WARM = 'AI_WARM'
AI_NONE = 'AI_NONE'

RISK_BASE = 10
RISK_CONCENTRATION_PENALTY = 25
RISK_FEW_HOLDERS_PENALTY = 20
RISK_NARRATIVE_PENALTY = 12
RISK_VOLUME_BONUS = 8
RISK_MIN, RISK_MAX = 1, 99


@dataclass
class AlertPayload:
    mint: str
    name: str
    top10_pct: Optional[float]
    holders: int
    risk: int
    narrative: str
    volume_spike: bool
    buy_link: str

    def to_html(self) -> str:
        return format_alert_html(self)


@dataclass
class EvaluationOutcome:
    mint: str
    reason: Optional[str] = None
    context: Dict[str, Any] = field(default_factory=dict)
    alert: Optional[AlertPayload] = None

    @property
    def is_alert(self) -> bool:
        return self.alert is not None

    @classmethod
    def skip(cls, mint: str, reason: str, **context) -> 'EvaluationOutcome':
        return cls(mint=mint, reason=reason, context=context)

    def log_line(self) -> str:
        details = ' '.join(f"{k}={v}" for k, v in self.context.items())
        return f"{self.reason} {self.mint}" + (f" {details}" if details else '')


@dataclass
class ScanContext:
    """Process-wide state and collaborators shared by discovery, evaluation and scheduling"""
    settings: ScannerSettings
    cache: ExpiringCache
    stats: RunStatistics
    inspector: HolderInspector
    dev_sold: DevSoldDetector
    volume: VolumeSpikeDetector
    notifier: Any = None
    seen: Set[str] = field(default_factory=set)


def compute_top10_pct(holders: List[Holder], supply: Optional[float]) -> Optional[float]:
    """Share of supply held by the ten largest holders, None when supply is unknown or zero"""
    if not supply:
        return None
    top_sum = sum(h.amount for h in holders[:10])
    return top_sum / supply * 100


def narrative_tag(text: str, keywords: Iterable[str]) -> str:
    if not text:
        return AI_NONE
    lower = text.lower()
    if any(k and k.lower() in lower for k in keywords):
        return AI_WARM
    return AI_NONE


def compute_risk_score(top10_pct: Optional[float], holders: int, narrative: str,
                       volume_spike: bool, settings: ScannerSettings) -> int:
    risk = RISK_BASE
    if top10_pct is not None and top10_pct > settings.top10_limit_pct * 0.75:
        risk += RISK_CONCENTRATION_PENALTY
    if holders < settings.min_holders * 1.2:
        risk += RISK_FEW_HOLDERS_PENALTY
    if narrative == AI_WARM:
        risk += RISK_NARRATIVE_PENALTY
    if volume_spike:
        risk -= RISK_VOLUME_BONUS
    return max(RISK_MIN, min(RISK_MAX, risk))


async def publish(ctx: ScanContext, html: str) -> bool:
    """Log a message to the stats log and hand it to the notifier; delivery failures never propagate"""
    ctx.stats.record(strip_tags(html))
    if ctx.notifier is None:
        logger.warning("Notifier not configured, message only logged")
        return False
    try:
        delivered = await ctx.notifier.send(html)
    except Exception as e:
        logger.error(f"Notifier raised: {e}")
        ctx.stats.set_error(f"TG:{e}")
        return False
    if not delivered and getattr(ctx.notifier, 'last_error', None):
        ctx.stats.set_error(f"TG:{ctx.notifier.last_error}")
    return bool(delivered)


class EvaluationPipeline:
    def __init__(self, ctx: ScanContext):
        self.ctx = ctx

    async def evaluate(self, mint: str) -> EvaluationOutcome:
        ctx = self.ctx
        settings = ctx.settings
        logger.info(f"Processing candidate {mint}")

        holders: List[Holder] = (await ctx.inspector.top_holders(mint)).value_or([])
        info = (await ctx.inspector.mint_info(mint)).value_or(None)
        supply = info.supply if info else None
        name = info.display_name if info else ''

        top10_pct = compute_top10_pct(holders, supply)
        holder_count = len(holders)
        dev_address = holders[0].address if holders else None

        dev_check = await ctx.dev_sold.check_dev_sold(mint, dev_address)
        if not (dev_check.ok and dev_check.sold):
            return self._skip(EvaluationOutcome.skip(mint, SKIP_NOT_SOLD, **self._dev_context(dev_check)))

        if top10_pct is not None and top10_pct > settings.top10_limit_pct:
            return self._skip(EvaluationOutcome.skip(mint, SKIP_TOP10, pct=f"{top10_pct:.2f}"))

        if holder_count < settings.min_holders:
            return self._skip(EvaluationOutcome.skip(mint, SKIP_HOLDERS, count=holder_count))

        volume_spike = await ctx.volume.detect_volume_spike(mint)
        narrative = narrative_tag(name, settings.ai_keywords)
        risk = compute_risk_score(top10_pct, holder_count, narrative, volume_spike, settings)

        payload = AlertPayload(
            mint=mint,
            name=name,
            top10_pct=top10_pct,
            holders=holder_count,
            risk=risk,
            narrative=narrative,
            volume_spike=volume_spike,
            buy_link=settings.swap_link_template.format(mint=mint),
        )
        await publish(ctx, payload.to_html())
        logger.info(f"Alert sent for {mint} (risk={risk}, top10={format_pct(top10_pct, 2)}, {narrative})")
        if settings.alert_pause > 0:
            await asyncio.sleep(settings.alert_pause)
        return EvaluationOutcome(mint=mint, alert=payload)

    @staticmethod
    def _dev_context(dev_check) -> Dict[str, Any]:
        if not dev_check.ok:
            return {'error': dev_check.error}
        if dev_check.reason:
            return {'reason': dev_check.reason}
        return {'moves': dev_check.moves}

    def _skip(self, outcome: EvaluationOutcome) -> EvaluationOutcome:
        logger.info(f"Skip {outcome.log_line()}")
        self.ctx.stats.record(outcome.log_line())
        return outcome
