import pytest
from unittest.mock import AsyncMock

from config import ScannerSettings
from utils.cache import ExpiringCache
from monitor.stats import RunStatistics
from monitor.pipeline import ScanContext
from services.holder_inspector import HolderInspector
from services.dev_sold import DevSoldDetector
from services.volume_spike import VolumeSpikeDetector

MINT = 'EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v'
DEV = '9WzDXwBbmkg8ZTbNMqUxvQRAyrZzDsGYdLVL9zYtAWWM'


class FakeClock:
    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return ExpiringCache(ttl=8.0, clock=clock)


@pytest.fixture
def settings():
    return ScannerSettings(
        check_interval=0.01,
        max_tokens_per_cycle=5,
        min_holders=20,
        top10_limit_pct=20.0,
        ai_keywords=('AI', 'GPT', 'Agent'),
        alert_pause=0,
    )


@pytest.fixture
def stats():
    return RunStatistics(log_cap=10)


@pytest.fixture
def ledger():
    mock = AsyncMock()
    mock.get_token_largest_accounts.return_value = []
    mock.get_parsed_account_info.return_value = None
    mock.get_signatures_for_address.return_value = []
    mock.get_parsed_transaction.return_value = None
    return mock


@pytest.fixture
def market():
    mock = AsyncMock()
    mock.get_pair_stats.return_value = None
    return mock


@pytest.fixture
def notifier():
    mock = AsyncMock()
    mock.send.return_value = True
    mock.last_error = None
    mock.configured = True
    return mock


@pytest.fixture
def ctx(settings, cache, stats, ledger, market, notifier):
    return ScanContext(
        settings=settings,
        cache=cache,
        stats=stats,
        inspector=HolderInspector(ledger, cache),
        dev_sold=DevSoldDetector(ledger, cache),
        volume=VolumeSpikeDetector(market, cache),
        notifier=notifier,
    )


def holder_accounts(amounts, prefix='Holder'):
    return [
        {'address': f'{prefix}{i}', 'amount': str(int(a * 10 ** 6)), 'decimals': 6, 'uiAmount': a}
        for i, a in enumerate(amounts)
    ]


def mint_account(supply_ui, decimals=6, name=None, symbol=None):
    info = {'decimals': decimals, 'supply': str(int(supply_ui * 10 ** decimals)), 'isInitialized': True}
    if name or symbol:
        info['extensions'] = [{
            'extension': 'tokenMetadata',
            'state': {'name': name or '', 'symbol': symbol or ''},
        }]
    return {'data': {'parsed': {'info': info, 'type': 'mint'}, 'program': 'spl-token'}}


def balance_tx(mint, pre=True):
    key = 'preTokenBalances' if pre else 'postTokenBalances'
    return {'meta': {key: [{'accountIndex': 1, 'mint': mint}]}, 'transaction': {'message': {}}}
