"""
Solana JSON-RPC integration for mint discovery and holder inspection
"""

import itertools
import logging
from typing import Any, Dict, List, Optional

from solders.pubkey import Pubkey

from .base import BaseAPIClient, RPCError, ThrottledFetcher

logger = logging.getLogger(__name__)


def validate_address(address: str) -> str:
    """Return the canonical base58 form, raising ValueError for anything that is not a pubkey"""
    return str(Pubkey.from_string(address))


class SolanaRPCClient(BaseAPIClient):
    """Ledger query service: the four read calls the scanner needs"""

    def __init__(self, fetcher: ThrottledFetcher, rpc_url: str, commitment: str = 'confirmed'):
        super().__init__(fetcher, rpc_url)
        self.commitment = commitment
        self._ids = itertools.count(1)

    async def call(self, method: str, params: List[Any]) -> Any:
        payload = {
            'jsonrpc': '2.0',
            'id': next(self._ids),
            'method': method,
            'params': params,
        }
        data = await self.make_request('POST', json=payload, headers={'Content-Type': 'application/json'})
        if not isinstance(data, dict):
            raise RPCError(None, f"unexpected response to {method}", self.base_url)
        if 'error' in data:
            err = data['error']
            if isinstance(err, dict):
                raise RPCError(err.get('code'), err.get('message', ''), self.base_url)
            raise RPCError(None, str(err), self.base_url)
        return data.get('result')

    async def get_signatures_for_address(self, address: str, limit: int = 100) -> List[Dict]:
        result = await self.call('getSignaturesForAddress', [
            validate_address(address),
            {'limit': limit, 'commitment': self.commitment}
        ])
        return result or []

    async def get_parsed_transaction(self, signature: str) -> Optional[Dict]:
        return await self.call('getTransaction', [
            signature,
            {
                'encoding': 'jsonParsed',
                'commitment': self.commitment,
                'maxSupportedTransactionVersion': 0,
            }
        ])

    async def get_token_largest_accounts(self, mint: str) -> List[Dict]:
        result = await self.call('getTokenLargestAccounts', [
            validate_address(mint),
            {'commitment': self.commitment}
        ])
        return (result or {}).get('value') or []

    async def get_parsed_account_info(self, address: str) -> Optional[Dict]:
        result = await self.call('getAccountInfo', [
            validate_address(address),
            {'encoding': 'jsonParsed', 'commitment': self.commitment}
        ])
        return (result or {}).get('value')
