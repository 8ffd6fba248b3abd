"""JSON-RPC tool-call server."""

from tasklane.rpc.server import RpcError, RpcServer

__all__ = ["RpcError", "RpcServer"]
