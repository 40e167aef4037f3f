import logging

from utils.cache import ExpiringCache, cache_key

logger = logging.getLogger(__name__)

VOLUME_FLOOR_USD = 5000
MIN_VOLUME_USD = 2


class VolumeSpikeDetector:
    """Flags abnormal 24h trading volume; any failure reads as no spike"""

    def __init__(self, market, cache: ExpiringCache,
                 volume_floor: float = VOLUME_FLOOR_USD, min_volume: float = MIN_VOLUME_USD):
        self.market = market
        self.cache = cache
        self.volume_floor = volume_floor
        self.min_volume = min_volume

    def is_spike(self, volume_24h: float) -> bool:
        return volume_24h > self.volume_floor and volume_24h > self.min_volume

    async def detect_volume_spike(self, mint: str) -> bool:
        key = cache_key('vol', mint)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        spike = False
        try:
            stats = await self.market.get_pair_stats(mint)
            if stats is not None:
                spike = self.is_spike(stats.volume_24h)
        except Exception as e:
            logger.warning(f"Volume lookup failed for {mint}: {e}")

        self.cache.set(key, spike)
        return spike
