"""
Commands - CLI front end over the RPC client and wallet helpers.

Each command is a thin click wrapper: parse flags, build a client, run one
coroutine, print the result.
"""
