"""
Discovery of freshly initialized mints on the SPL token program
"""

import logging
from typing import Dict, Iterator, List, Optional, Set

from config import TOKEN_PROGRAM_ID

logger = logging.getLogger(__name__)

SIGNATURE_WINDOW = 80
MINT_INIT_TYPES = ('initializeMint', 'initializeMint2')


def iter_instructions(tx: Dict) -> Iterator[Dict]:
    """Top-level instructions first, then inner (CPI) instructions in order"""
    transaction = tx.get('transaction')
    message = transaction.get('message') if isinstance(transaction, dict) else None
    if isinstance(message, dict):
        yield from _as_list(message.get('instructions'))
    meta = tx.get('meta')
    if not isinstance(meta, dict):
        return
    for group in _as_list(meta.get('innerInstructions')):
        if not isinstance(group, dict):
            continue
        yield from _as_list(group.get('instructions'))


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def initialized_mint(inst: Dict) -> Optional[str]:
    parsed = inst.get('parsed') if isinstance(inst, dict) else None
    if not isinstance(parsed, dict) or parsed.get('type') not in MINT_INIT_TYPES:
        return None
    info = parsed.get('info')
    mint = info.get('mint') if isinstance(info, dict) else None
    return mint if isinstance(mint, str) and mint else None


class CandidateDiscoverer:
    def __init__(self, ledger, seen: Set[str], program_id: str = TOKEN_PROGRAM_ID,
                 window: int = SIGNATURE_WINDOW):
        self.ledger = ledger
        self.seen = seen
        self.program_id = program_id
        self.window = window

    async def discover(self, limit: int) -> List[str]:
        """Up to `limit` distinct unseen mints, in the order they were found"""
        if limit <= 0:
            return []
        try:
            signatures = await self.ledger.get_signatures_for_address(self.program_id, limit=self.window)
        except Exception as e:
            logger.error(f"Discovery failed to list program signatures: {e}")
            return []

        candidates: List[str] = []
        for entry in signatures:
            signature = entry.get('signature') if isinstance(entry, dict) else None
            if not signature:
                continue
            try:
                tx = await self.ledger.get_parsed_transaction(signature)
            except Exception as e:
                logger.debug(f"Skipping transaction {signature}: {e}")
                continue
            if not isinstance(tx, dict) or not tx.get('transaction'):
                continue

            for inst in iter_instructions(tx):
                mint = initialized_mint(inst)
                if mint and mint not in self.seen and mint not in candidates:
                    candidates.append(mint)
                    if len(candidates) >= limit:
                        logger.info(f"Discovered {len(candidates)} new mints (limit reached)")
                        return candidates

        logger.info(f"Discovered {len(candidates)} new mints from {len(signatures)} signatures")
        return candidates
