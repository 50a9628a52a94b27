"""
Service layer: backend client, stdio transport, RPC dispatch.
"""
