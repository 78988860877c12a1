"""
=============================================================================
TOOLKITAPI - Local HTTP API for the desktop toolkit
=============================================================================

Lets other processes on the same machine (scripts, browser extensions,
automation tools) use the toolkit's text recognition over loopback HTTP.

    $ curl -s http://127.0.0.1:54321/health
    {"status": "ok", "timestamp": 1792411200.1, "service": "mac-toolkit-api", "version": "1.0.0"}

    $ curl -s -F image=@shot.png -F language=en-US http://127.0.0.1:54321/ocr
    {"text": "HELLO", "confidence": 0.95, "language": "en-US", "blocks": []}

The HTTP layer is written directly on sockets: one accept thread, one
worker thread per connection, one request per connection.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    toolkitapi/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m toolkitapi)
    ├── server.py            # APIServer: wires everything together
    ├── config.py            # ServerConfig dataclass
    ├── errors.py            # APIError taxonomy → JSON error bodies
    ├── core/                # Sockets and threads
    │   ├── socket_server.py # Listener + live-connection registry
    │   └── connection.py    # One client connection
    ├── http/                # HTTP protocol
    │   ├── request.py       # Request parsing
    │   ├── multipart.py     # multipart/form-data decoding
    │   ├── response.py      # Response building
    │   ├── router.py        # (method, path) dispatch
    │   └── status_codes.py  # HTTPStatus enum
    ├── handlers/            # /health and /ocr
    ├── middleware/          # Access logging
    └── services/            # Text recognition & speech collaborators

=============================================================================
"""

__version__ = "1.0.0"

from .config import ServerConfig
from .errors import APIError
from .server import APIServer, create_app

__all__ = ["APIServer", "APIError", "ServerConfig", "create_app", "__version__"]
