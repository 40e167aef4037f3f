"""
DexScreener integration: pair liquidity and 24h volume for a Solana mint
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from .base import BaseAPIClient, ThrottledFetcher

logger = logging.getLogger(__name__)


def _as_float(value) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


@dataclass
class PairStats:
    pair_address: str
    liquidity_usd: float
    volume_24h: float
    price_usd: float


class DexScreenerClient(BaseAPIClient):
    """Market-data service backed by the public DexScreener API (no key required)"""

    def __init__(self, fetcher: ThrottledFetcher, base_url: str = 'https://api.dexscreener.com/latest/dex'):
        super().__init__(fetcher, base_url)

    async def get_pair_stats(self, mint: str) -> Optional[PairStats]:
        """Stats for the mint's trading pair, None when no priced pair exists"""
        data = await self.make_request('GET', f'/pairs/solana/{mint}')
        return self.parse_pair(data)

    @staticmethod
    def parse_pair(data: Optional[Dict]) -> Optional[PairStats]:
        if not isinstance(data, dict):
            return None
        pair = data.get('pair')
        if not pair and data.get('pairs'):
            pair = data['pairs'][0]
        if not isinstance(pair, dict):
            return None
        if not pair.get('liquidity') or not pair.get('priceUsd'):
            return None

        liquidity = pair['liquidity']
        volume = pair.get('volume')
        if isinstance(volume, dict):
            volume_24h = _as_float(volume.get('h24'))
        else:
            volume_24h = _as_float(pair.get('volumeUsd24h'))

        return PairStats(
            pair_address=pair.get('pairAddress', ''),
            liquidity_usd=_as_float(liquidity.get('usd') if isinstance(liquidity, dict) else liquidity),
            volume_24h=volume_24h,
            price_usd=_as_float(pair.get('priceUsd')),
        )
