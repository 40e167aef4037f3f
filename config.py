import os
import logging
from dataclasses import dataclass, field
from typing import Tuple
from dotenv import load_dotenv

# Load only the main .env file and allow override to ensure consistency
load_dotenv(dotenv_path=os.path.join(os.getcwd(), '.env'), override=True)

logger = logging.getLogger(__name__)

TOKEN_PROGRAM_ID = 'TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA'
TOKEN_2022_PROGRAM_ID = 'TokenzQdBNbLqP5VEhdkAS6EPFLC1PeoKpGBMX2pb6T'
DEFAULT_AI_KEYWORDS = 'AI,GPT,LLM,GenAI,Neural,Model,Agent'


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return int(raw.strip())
    except ValueError:
        logger.warning(f"Invalid integer for {name}={raw!r}, using default {default}")
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == '':
        return default
    try:
        return float(raw.strip())
    except ValueError:
        logger.warning(f"Invalid number for {name}={raw!r}, using default {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def parse_keywords(raw: str) -> Tuple[str, ...]:
    """Split a comma-separated keyword list, dropping blanks"""
    return tuple(k.strip() for k in (raw or '').split(',') if k.strip())


class Config:
    # Ledger / market data endpoints
    SOLANA_RPC_URL = os.getenv('SOLANA_RPC_URL') or os.getenv('RPC_URL') or 'https://api.mainnet-beta.solana.com'
    DEXSCREENER_API_URL = os.getenv('DEXSCREENER_API_URL', 'https://api.dexscreener.com/latest/dex')

    # Telegram - optional, alerts are only logged when missing
    TELEGRAM_BOT_TOKEN = os.getenv('TELEGRAM_BOT_TOKEN') or os.getenv('TELEGRAM_TOKEN')
    TELEGRAM_CHAT_ID = os.getenv('TELEGRAM_CHAT_ID')
    TELEGRAM_COMMANDS_ENABLED = _env_bool('TELEGRAM_COMMANDS_ENABLED', False)

    # Scanner Configuration
    CHECK_INTERVAL_MS = _env_int('CHECK_INTERVAL_MS', 5000)
    MAX_TOKENS_PER_CYCLE = _env_int('MAX_TOKENS_PER_CYCLE', 18)
    MIN_HOLDERS = _env_int('MIN_HOLDERS', 20)
    TOP10_LIMIT_PCT = _env_float('TOP10_LIMIT_PCT', 20.0)
    AI_KEYWORDS = parse_keywords(os.getenv('AI_KEYWORDS', DEFAULT_AI_KEYWORDS))
    CACHE_TTL_MS = _env_int('CACHE_TTL_MS', 8000)

    # API Settings
    FETCH_MIN_INTERVAL_MS = _env_int('FETCH_MIN_INTERVAL_MS', 380)
    FETCH_MAX_RETRIES = _env_int('FETCH_MAX_RETRIES', 3)
    FETCH_BACKOFF_CAP_MS = _env_int('FETCH_BACKOFF_CAP_MS', 10000)
    REQUEST_TIMEOUT = _env_int('REQUEST_TIMEOUT', 30)

    # Run statistics
    ALERT_LOG_CAP = _env_int('ALERT_LOG_CAP', 400)
    STATS_FILE = os.getenv('STATS_FILE', os.path.join(os.getcwd(), 'worker-stats.json'))

    SWAP_LINK_TEMPLATE = os.getenv('SWAP_LINK_TEMPLATE', 'https://jup.ag/swap/SOL-{mint}')

    # Program whose mint initializations are scanned; only Token-2022 mints carry name/symbol metadata
    DISCOVERY_PROGRAM_ID = os.getenv('DISCOVERY_PROGRAM_ID', TOKEN_PROGRAM_ID)

    @classmethod
    def telegram_configured(cls) -> bool:
        return bool(cls.TELEGRAM_BOT_TOKEN and cls.TELEGRAM_CHAT_ID)

    @classmethod
    def validate(cls):
        """Soft validation: warn about anything that limits the worker"""
        if not cls.telegram_configured():
            logger.warning("Telegram not configured - set TELEGRAM_BOT_TOKEN and TELEGRAM_CHAT_ID in .env")
        if cls.DISCOVERY_PROGRAM_ID not in (TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID):
            logger.warning(f"DISCOVERY_PROGRAM_ID {cls.DISCOVERY_PROGRAM_ID} is not an SPL token program")
        elif cls.DISCOVERY_PROGRAM_ID == TOKEN_PROGRAM_ID:
            logger.info("Discovering classic SPL mints - names are unavailable, so AI_WARM tags will not fire")
        if not cls.AI_KEYWORDS:
            logger.warning("AI_KEYWORDS is empty - every candidate will be tagged AI_NONE")
        return True


@dataclass(frozen=True)
class ScannerSettings:
    """Immutable evaluation settings injected into the pipeline and scheduler"""
    check_interval: float = 5.0
    max_tokens_per_cycle: int = 18
    min_holders: int = 20
    top10_limit_pct: float = 20.0
    ai_keywords: Tuple[str, ...] = field(default_factory=lambda: parse_keywords(DEFAULT_AI_KEYWORDS))
    cache_ttl: float = 8.0
    swap_link_template: str = 'https://jup.ag/swap/SOL-{mint}'
    alert_pause: float = 0.22

    @classmethod
    def from_config(cls, config=Config) -> 'ScannerSettings':
        return cls(
            check_interval=config.CHECK_INTERVAL_MS / 1000.0,
            max_tokens_per_cycle=config.MAX_TOKENS_PER_CYCLE,
            min_holders=config.MIN_HOLDERS,
            top10_limit_pct=config.TOP10_LIMIT_PCT,
            ai_keywords=tuple(config.AI_KEYWORDS),
            cache_ttl=config.CACHE_TTL_MS / 1000.0,
            swap_link_template=config.SWAP_LINK_TEMPLATE,
        )
