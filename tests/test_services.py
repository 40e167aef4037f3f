"""
Tests for the holder inspector, dev-sold detector and volume spike detector
"""
import pytest
from unittest.mock import AsyncMock

from integrations.base import FetchError
from integrations.dexscreener import PairStats
from services.holder_inspector import Holder, HolderInspector, MintInfo, parse_mint_account
from services.dev_sold import DevSoldDetector, NO_TOP_HOLDER, transaction_touches_mint
from services.volume_spike import VolumeSpikeDetector
from services.lookup import ABSENT, ERROR, OK
from conftest import DEV, MINT, balance_tx, holder_accounts, mint_account


class TestHolderInspector:

    @pytest.mark.asyncio
    async def test_top_holders_ordered_and_cached(self, ledger, cache):
        ledger.get_token_largest_accounts.return_value = holder_accounts([50, 30, 20])
        inspector = HolderInspector(ledger, cache)

        first = await inspector.top_holders(MINT)
        second = await inspector.top_holders(MINT)

        assert first.status == OK
        assert first.value == [Holder('Holder0', 50), Holder('Holder1', 30), Holder('Holder2', 20)]
        assert second.value == first.value
        ledger.get_token_largest_accounts.assert_awaited_once_with(MINT)

    @pytest.mark.asyncio
    async def test_top_holders_refetched_after_ttl(self, ledger, cache, clock):
        ledger.get_token_largest_accounts.return_value = holder_accounts([1])
        inspector = HolderInspector(ledger, cache)
        await inspector.top_holders(MINT)
        clock.advance(8)
        await inspector.top_holders(MINT)
        assert ledger.get_token_largest_accounts.await_count == 2

    @pytest.mark.asyncio
    async def test_top_holders_failure_degrades_to_empty(self, ledger, cache):
        ledger.get_token_largest_accounts.side_effect = FetchError('down')
        result = await HolderInspector(ledger, cache).top_holders(MINT)
        assert result.status == ERROR
        assert result.error == 'down'
        assert result.value_or([]) == []

    @pytest.mark.asyncio
    async def test_mint_info_with_metadata(self, ledger, cache):
        ledger.get_parsed_account_info.return_value = mint_account(1000, name='SuperAI', symbol='SAI')
        result = await HolderInspector(ledger, cache).mint_info(MINT)
        assert result.status == OK
        assert result.value == MintInfo(supply=1000.0, decimals=6, name='SuperAI', symbol='SAI')
        assert result.value.display_name == 'SuperAI SAI'

    @pytest.mark.asyncio
    async def test_mint_info_absent_vs_error(self, ledger, cache):
        inspector = HolderInspector(ledger, cache)
        ledger.get_parsed_account_info.return_value = None
        assert (await inspector.mint_info(MINT)).status == ABSENT

        ledger.get_parsed_account_info.side_effect = ValueError('Invalid Base58 string')
        result = await inspector.mint_info('other')
        assert result.status == ERROR
        assert result.value_or(None) is None

    def test_parse_mint_account_unparsed_data(self):
        assert parse_mint_account({'data': ['base64data', 'base64']}) is None
        assert parse_mint_account(None) is None

    def test_parse_mint_account_without_supply(self):
        info = parse_mint_account({'data': {'parsed': {'info': {'decimals': 9}}}})
        assert info.supply is None
        assert info.display_name == ''


class TestDevSoldDetector:

    @pytest.mark.asyncio
    async def test_no_top_holder(self, ledger, cache):
        result = await DevSoldDetector(ledger, cache).check_dev_sold(MINT, None)
        assert result == NO_TOP_HOLDER
        assert result.ok and not result.sold and result.reason == 'no_top'
        ledger.get_signatures_for_address.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_counts_moves_and_skips_failures(self, ledger, cache):
        ledger.get_signatures_for_address.return_value = [
            {'signature': 's1'}, {'signature': 's2'}, {'signature': 's3'}, {'signature': 's4'}, {},
        ]
        ledger.get_parsed_transaction.side_effect = [
            balance_tx(MINT, pre=True),
            FetchError('boom'),
            balance_tx('OtherMint'),
            balance_tx(MINT, pre=False),
        ]
        result = await DevSoldDetector(ledger, cache).check_dev_sold(MINT, DEV)

        assert result.ok and result.sold
        assert result.moves == 2
        ledger.get_signatures_for_address.assert_awaited_once_with(DEV, limit=120)

    @pytest.mark.asyncio
    async def test_not_sold_when_no_moves(self, ledger, cache):
        ledger.get_signatures_for_address.return_value = [{'signature': 's1'}]
        ledger.get_parsed_transaction.return_value = {'meta': None}
        result = await DevSoldDetector(ledger, cache).check_dev_sold(MINT, DEV)
        assert result.ok and not result.sold and result.moves == 0

    @pytest.mark.asyncio
    async def test_signature_listing_failure(self, ledger, cache):
        ledger.get_signatures_for_address.side_effect = FetchError('rate limited')
        detector = DevSoldDetector(ledger, cache)
        result = await detector.check_dev_sold(MINT, DEV)
        assert not result.ok
        assert result.error == 'rate limited'
        # errors are not cached
        ledger.get_signatures_for_address.side_effect = None
        ledger.get_signatures_for_address.return_value = []
        assert (await detector.check_dev_sold(MINT, DEV)).ok

    @pytest.mark.asyncio
    async def test_cached_per_mint_and_holder(self, ledger, cache):
        ledger.get_signatures_for_address.return_value = []
        detector = DevSoldDetector(ledger, cache)
        await detector.check_dev_sold(MINT, DEV)
        await detector.check_dev_sold(MINT, DEV)
        await detector.check_dev_sold(MINT, 'AnotherHolder')
        assert ledger.get_signatures_for_address.await_count == 2

    def test_transaction_touches_mint(self):
        assert transaction_touches_mint(balance_tx(MINT), MINT)
        assert not transaction_touches_mint(balance_tx('X'), MINT)
        assert not transaction_touches_mint(None, MINT)
        assert not transaction_touches_mint({'meta': {'preTokenBalances': [None]}}, MINT)


class TestVolumeSpikeDetector:

    def _stats(self, volume):
        return PairStats(pair_address='P', liquidity_usd=1000, volume_24h=volume, price_usd=1)

    @pytest.mark.asyncio
    @pytest.mark.parametrize('volume,expected', [(5000.01, True), (5000, False), (10, False)])
    async def test_spike_threshold(self, market, cache, volume, expected):
        market.get_pair_stats.return_value = self._stats(volume)
        assert await VolumeSpikeDetector(market, cache).detect_volume_spike(MINT) is expected

    @pytest.mark.asyncio
    async def test_failure_degrades_to_no_spike(self, market, cache):
        market.get_pair_stats.side_effect = FetchError('timeout')
        assert await VolumeSpikeDetector(market, cache).detect_volume_spike(MINT) is False

    @pytest.mark.asyncio
    async def test_missing_pair_is_no_spike(self, market, cache):
        market.get_pair_stats.return_value = None
        assert await VolumeSpikeDetector(market, cache).detect_volume_spike(MINT) is False

    @pytest.mark.asyncio
    async def test_result_cached_per_mint(self, market, cache):
        market.get_pair_stats.return_value = self._stats(9000)
        detector = VolumeSpikeDetector(market, cache)
        assert await detector.detect_volume_spike(MINT) is True
        market.get_pair_stats.return_value = self._stats(0)
        assert await detector.detect_volume_spike(MINT) is True
        market.get_pair_stats.assert_awaited_once()

    def test_secondary_threshold(self):
        detector = VolumeSpikeDetector(AsyncMock(), None, volume_floor=0, min_volume=2)
        assert not detector.is_spike(1.5)
        assert detector.is_spike(2.5)
