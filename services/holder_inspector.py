import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from utils.cache import ExpiringCache, cache_key
from services.lookup import LookupResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Holder:
    address: str
    amount: float


@dataclass(frozen=True)
class MintInfo:
    supply: Optional[float]
    decimals: int = 0
    name: str = ''
    symbol: str = ''

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.symbol}".strip()


def _ui_amount(entry: Dict) -> float:
    if entry.get('uiAmount') is not None:
        return float(entry['uiAmount'])
    if entry.get('uiAmountString'):
        return float(entry['uiAmountString'])
    amount = entry.get('amount')
    decimals = entry.get('decimals') or 0
    return int(amount) / (10 ** decimals) if amount else 0.0


def parse_holders(accounts: List[Dict]) -> List[Holder]:
    holders = []
    for entry in accounts:
        if not isinstance(entry, dict) or not entry.get('address'):
            continue
        holders.append(Holder(address=entry['address'], amount=_ui_amount(entry)))
    return holders


def parse_mint_account(account: Optional[Dict]) -> Optional[MintInfo]:
    """Extract supply (in UI units) and optional token-metadata name/symbol from a jsonParsed mint account"""
    if not isinstance(account, dict):
        return None
    data = account.get('data')
    parsed = data.get('parsed') if isinstance(data, dict) else None
    if not isinstance(parsed, dict):
        return None
    info = parsed.get('info') or {}

    decimals = int(info.get('decimals') or 0)
    supply = None
    if info.get('supply') not in (None, ''):
        supply = int(info['supply']) / (10 ** decimals)

    name, symbol = info.get('name') or '', info.get('symbol') or ''
    for ext in info.get('extensions') or []:
        if isinstance(ext, dict) and ext.get('extension') == 'tokenMetadata':
            state = ext.get('state') or {}
            name = name or state.get('name') or ''
            symbol = symbol or state.get('symbol') or ''

    return MintInfo(supply=supply, decimals=decimals, name=name.strip(), symbol=symbol.strip())


class HolderInspector:
    """Resolves top holders and mint metadata, cached per mint"""

    def __init__(self, ledger, cache: ExpiringCache):
        self.ledger = ledger
        self.cache = cache

    async def top_holders(self, mint: str) -> LookupResult:
        key = cache_key('top', mint)
        cached = self.cache.get(key)
        if cached is not None:
            return LookupResult.ok(cached)
        try:
            holders = parse_holders(await self.ledger.get_token_largest_accounts(mint))
        except Exception as e:
            logger.warning(f"Top holders lookup failed for {mint}: {e}")
            return LookupResult.failed(e)
        self.cache.set(key, holders)
        return LookupResult.ok(holders)

    async def mint_info(self, mint: str) -> LookupResult:
        key = cache_key('mint', mint)
        cached = self.cache.get(key)
        if cached is not None:
            return LookupResult.ok(cached)
        try:
            info = parse_mint_account(await self.ledger.get_parsed_account_info(mint))
        except Exception as e:
            logger.warning(f"Mint info lookup failed for {mint}: {e}")
            return LookupResult.failed(e)
        if info is None:
            return LookupResult.absent()
        self.cache.set(key, info)
        return LookupResult.ok(info)
