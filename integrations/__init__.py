"""
Upstream clients: Solana JSON-RPC and DexScreener over a shared ThrottledFetcher
"""
