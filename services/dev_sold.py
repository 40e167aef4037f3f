"""
Dev-sold heuristic: has the top holder moved tokens of this mint?

A token whose dominant early holder has already moved its position is
treated as de-risked compared to one where the dev still sits on supply.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from utils.cache import ExpiringCache, cache_key

logger = logging.getLogger(__name__)

SIGNATURE_LIMIT = 120


@dataclass(frozen=True)
class DevSoldResult:
    ok: bool
    sold: bool = False
    moves: int = 0
    reason: Optional[str] = None
    error: Optional[str] = None


NO_TOP_HOLDER = DevSoldResult(ok=True, sold=False, reason='no_top')


def transaction_touches_mint(tx: Optional[Dict], mint: str) -> bool:
    """True when the pre- or post-token balances of a parsed transaction mention the mint"""
    if not isinstance(tx, dict):
        return False
    meta = tx.get('meta')
    if not isinstance(meta, dict):
        return False
    balances = (meta.get('preTokenBalances') or []) + (meta.get('postTokenBalances') or [])
    return any(isinstance(b, dict) and b.get('mint') == mint for b in balances)


class DevSoldDetector:
    def __init__(self, ledger, cache: ExpiringCache, signature_limit: int = SIGNATURE_LIMIT):
        self.ledger = ledger
        self.cache = cache
        self.signature_limit = signature_limit

    async def check_dev_sold(self, mint: str, top_holder: Optional[str]) -> DevSoldResult:
        if not top_holder:
            return NO_TOP_HOLDER

        key = cache_key('devsold', mint, top_holder)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        try:
            signatures = await self.ledger.get_signatures_for_address(top_holder, limit=self.signature_limit)
        except Exception as e:
            logger.warning(f"Could not list signatures for holder {top_holder} of {mint}: {e}")
            return DevSoldResult(ok=False, error=str(e) or e.__class__.__name__)

        moves = 0
        for entry in signatures:
            signature = entry.get('signature') if isinstance(entry, dict) else None
            if not signature:
                continue
            try:
                tx = await self.ledger.get_parsed_transaction(signature)
            except Exception as e:
                logger.debug(f"Skipping transaction {signature}: {e}")
                continue
            if transaction_touches_mint(tx, mint):
                moves += 1

        result = DevSoldResult(ok=True, sold=moves > 0, moves=moves)
        self.cache.set(key, result)
        return result
