"""
RPC - network interaction layer for the Qubic client.

Endpoint registry, error classifier, retry policy, transport, health
monitor, transaction builder and the ``QubicRpcClient`` façade.

Uses httpx.AsyncClient; every network operation is a coroutine.
"""
