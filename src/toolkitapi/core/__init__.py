"""
=============================================================================
CORE NETWORKING LAYER
=============================================================================

Sockets and threads; no HTTP knowledge lives here.

    ┌─────────────────────────────────────────────────────────────────────┐
    │ SocketServer (socket_server.py)                                     │
    │   binds 127.0.0.1:54321, accept thread, one worker per connection,  │
    │   live-connection registry, idempotent start()/stop()               │
    ├─────────────────────────────────────────────────────────────────────┤
    │ Connection (connection.py)                                          │
    │   one client socket: read one request, send one response, close    │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .connection import Connection, ConnectionState
from .socket_server import ConnectionHandler, SocketServer

__all__ = [
    "SocketServer",
    "ConnectionHandler",
    "Connection",
    "ConnectionState",
]
