"""
=============================================================================
TCP LISTENER
=============================================================================

Binds the loopback port, accepts connections and supervises their
lifecycles. Everything HTTP happens in the connection handler callback;
this module only deals with sockets and threads.

=============================================================================
THREADING MODEL
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                      │
    │   caller thread          start() ───► returns immediately           │
    │                                │                                     │
    │                                ▼                                     │
    │   accept thread          while running:                              │
    │                              accept() ──► Connection                 │
    │                                │          _register(conn)            │
    │                                │          spawn worker ──────┐       │
    │                                ▼                             │       │
    │   worker thread (one per connection)                         ▼       │
    │                              handler(conn)                           │
    │                              conn.close()                            │
    │                              _unregister(conn)                       │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

A stuck peer only ever holds its own worker thread; the accept loop and
every other connection keep going.

=============================================================================
SHARED STATE
=============================================================================

The only state shared between threads is the registry of live
connections. It is touched in exactly two places, _register() on accept
and _unregister() when a worker finishes, both under one lock. stop()
reads a snapshot under the same lock.

=============================================================================
"""

import logging
import socket
import threading
import time
from typing import Callable, List, Optional, Set, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

ConnectionHandler = Callable[[Connection], None]


class SocketServer:
    """
    TCP listener with a live-connection registry.

        server = SocketServer(config)
        server.start(handle_connection)   # returns at once
        ...
        server.stop()                     # closes everything, idempotent

    start() on a running server and stop() on a stopped one are no-ops
    that log a diagnostic.
    """

    # accept() wakes at least this often to notice stop()
    ACCEPT_POLL_INTERVAL = 0.5
    # How long stop() waits for each worker thread to wind down
    JOIN_TIMEOUT = 5.0

    def __init__(self, config: ServerConfig):
        self.config = config

        self._socket: Optional[socket.socket] = None
        self._running = False
        self._port: Optional[int] = None

        self._accept_thread: Optional[threading.Thread] = None
        self._stopped = threading.Event()
        self._stopped.set()

        # start()/stop() are serialized against each other
        self._lifecycle_lock = threading.Lock()

        # Registry of live connections and their worker threads
        self._lock = threading.Lock()
        self._connections: Set[Connection] = set()
        self._workers: Set[threading.Thread] = set()

    # ─────────────────────────────────────────────────────────────────────
    # STATE
    # ─────────────────────────────────────────────────────────────────────

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def port(self) -> int:
        """The bound port (the OS-chosen one when configured with 0)."""
        return self._port if self._port is not None else self.config.port

    @property
    def address(self) -> Tuple[str, int]:
        return (self.config.host, self.port)

    @property
    def connections(self) -> List[Connection]:
        """Snapshot of the live connections."""
        with self._lock:
            return list(self._connections)

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    # ─────────────────────────────────────────────────────────────────────
    # START
    # ─────────────────────────────────────────────────────────────────────

    def _create_socket(self) -> socket.socket:
        """Create the listening socket with the options a local server wants."""
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)

        # Allow an immediate restart on the same port (TIME_WAIT)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

        # Small JSON responses; don't let Nagle hold them back
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)

        sock.settimeout(self.ACCEPT_POLL_INTERVAL)
        return sock

    def start(self, connection_handler: ConnectionHandler) -> bool:
        """
        Bind, listen and start accepting in a background thread.

        Args:
            connection_handler: Called in a fresh worker thread for every
                accepted connection. The connection is closed and
                unregistered when it returns.

        Returns:
            True if the server was started, False if it was already running.

        Raises:
            OSError: If the port cannot be bound.
        """
        with self._lifecycle_lock:
            if self._running:
                logger.warning(f"Server already running on {self.config.host}:{self.port}")
                return False

            sock = self._create_socket()
            try:
                sock.bind((self.config.host, self.config.port))
                sock.listen(self.config.backlog)
            except OSError as e:
                sock.close()
                logger.error(f"Failed to bind to {self.config.host}:{self.config.port}: {e}")
                raise

            self._socket = sock
            self._port = sock.getsockname()[1]
            self._running = True
            self._stopped.clear()

            self._accept_thread = threading.Thread(
                target=self._accept_loop,
                args=(sock, connection_handler),
                name=f"accept-{self._port}",
                daemon=True,
            )
            self._accept_thread.start()

        logger.info(f"Server listening on {self.config.host}:{self._port}")
        return True

    def _accept_loop(self, sock: socket.socket, connection_handler: ConnectionHandler):
        """
        Accept connections until stop().

        A failed accept() is logged and the loop carries on; only
        stop() ends it.
        """
        while self._running:
            try:
                client_socket, client_address = sock.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if not self._running:
                    break  # Listening socket closed by stop()
                logger.error(f"Accept error: {e}")
                self._stopped.wait(0.05)
                continue

            conn = Connection(
                socket=client_socket,
                address=client_address,
                buffer_size=self.config.buffer_size,
                timeout=self.config.timeout,
                max_request_size=self.config.max_request_size,
            )
            logger.debug(f"[{conn.id}] Accepted connection from {client_address[0]}:{client_address[1]}")

            worker = threading.Thread(
                target=self._serve,
                args=(conn, connection_handler),
                name=f"conn-{conn.id}",
                daemon=True,
            )
            self._register(conn, worker)
            worker.start()

    def _serve(self, conn: Connection, connection_handler: ConnectionHandler):
        """Worker thread body: run the handler, then always clean up."""
        try:
            connection_handler(conn)
        except Exception:
            logger.exception(f"[{conn.id}] Unhandled error in connection handler")
        finally:
            conn.close()
            self._unregister(conn)

    # ─────────────────────────────────────────────────────────────────────
    # REGISTRY
    # ─────────────────────────────────────────────────────────────────────

    def _register(self, conn: Connection, worker: threading.Thread):
        with self._lock:
            self._connections.add(conn)
            self._workers.add(worker)

    def _unregister(self, conn: Connection):
        with self._lock:
            self._connections.discard(conn)
            self._workers.discard(threading.current_thread())

    # ─────────────────────────────────────────────────────────────────────
    # STOP
    # ─────────────────────────────────────────────────────────────────────

    def stop(self) -> bool:
        """
        Stop accepting, close every live connection and release the port.

        ┌─────────────────────────────────────────────────────────────────┐
        │  1. running = False                                              │
        │  2. close the listening socket, join the accept thread           │
        │     (no new connection can be registered after this)             │
        │  3. abort every registered connection                            │
        │  4. join their workers (JOIN_TIMEOUT in total, not per worker);  │
        │     the registry is empty on return                              │
        └─────────────────────────────────────────────────────────────────┘

        Returns:
            True if the server was stopped, False if it was not running.
        """
        with self._lifecycle_lock:
            if not self._running:
                logger.info("Server not running")
                return False

            logger.info(f"Stopping server on {self.config.host}:{self.port}")
            self._running = False

            if self._socket is not None:
                try:
                    self._socket.shutdown(socket.SHUT_RDWR)
                except OSError:
                    pass  # Never connected; close() is enough
                self._socket.close()
                self._socket = None

            if self._accept_thread is not None and self._accept_thread is not threading.current_thread():
                self._accept_thread.join(self.JOIN_TIMEOUT)
            self._accept_thread = None

            with self._lock:
                live = list(self._connections)
                workers = list(self._workers)

            if live:
                logger.info(f"Closing {len(live)} open connection(s)")
            for conn in live:
                conn.abort()

            # One shared deadline: workers stuck in a collaborator cannot be woken
            deadline = time.monotonic() + self.JOIN_TIMEOUT
            current = threading.current_thread()
            for worker in workers:
                if worker is not current:
                    worker.join(max(0.0, deadline - time.monotonic()))

            with self._lock:
                if self._connections:
                    logger.warning(
                        f"{len(self._connections)} connection(s) did not finish in time"
                    )
                self._connections.clear()
                self._workers.clear()

            self._stopped.set()

        logger.info("Server stopped")
        return True

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Block until stop() completes.

        Returns:
            True if the server is stopped, False on timeout.
        """
        return self._stopped.wait(timeout)
