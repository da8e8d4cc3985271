"""
WebSocket Base Manager
======================

Connection registry shared by the service's WebSocket endpoints.

Map documents are rendered inside FastAPI's threadpool, so diagnostics raised
while rendering (geozone lookup failures, rejected requests) come from worker
threads. `send_from_thread()` hands those messages to the main event loop,
which then fans them out to every registered client.

Thread Safety:
-------------
The client list is guarded by a threading.Lock. Broadcasts work on a snapshot
of the list so no lock is held during socket I/O.
"""

from fastapi import WebSocket
import asyncio
from typing import List, Optional, Dict, Any
import json
import threading


class WebSocketManager:
    """
    Base manager for a set of WebSocket clients.

    Attributes:
        clients (List[WebSocket]): Active connections
        main_loop (Optional[asyncio.AbstractEventLoop]): Loop used by send_from_thread()
    """

    def __init__(self):
        self.clients: List[WebSocket] = []
        self.main_loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()

    def set_main_loop(self, loop: asyncio.AbstractEventLoop):
        """
        Bind the manager to FastAPI's running loop. Called once from lifespan().

        Args:
            loop: Result of asyncio.get_running_loop()
        """
        self.main_loop = loop

    async def register(self, ws: WebSocket):
        """
        Accept the handshake and start tracking the client.

        Raises:
            Exception: Handshake failure (the client is untracked first)
        """
        with self._lock:
            self.clients.append(ws)
        try:
            await ws.accept()
            print(f"[WSBase] Client registered ({len(self.clients)} connected)")
        except Exception:
            self.unregister(ws)
            raise

    def unregister(self, ws: WebSocket):
        """Stop tracking a client. Safe to call more than once."""
        with self._lock:
            if ws in self.clients:
                self.clients.remove(ws)
                print(f"[WSBase] Client unregistered ({len(self.clients)} connected)")

    @property
    def has_clients(self) -> bool:
        with self._lock:
            return len(self.clients) > 0

    async def broadcast(self, message: Dict[str, Any]):
        """
        Send `message` as JSON to every client; clients that fail are dropped.

        Args:
            message: JSON-serializable payload
        """
        to_remove = []

        with self._lock:
            current_clients = list(self.clients)

        for ws in current_clients:
            try:
                await ws.send_text(json.dumps(message))
            except Exception:
                to_remove.append(ws)

        for ws in to_remove:
            self.unregister(ws)

    def send_from_thread(self, message: Dict[str, Any]):
        """
        Schedule a broadcast on the main loop from any thread.

        No-op (console only) when nobody is listening or the loop is not bound
        yet, e.g. when rendering outside the ASGI app.
        """
        if not self.has_clients:
            print(f"[WSBase] No clients connected. Message not sent: {message}")
            return

        if self.main_loop:
            asyncio.run_coroutine_threadsafe(
                self.broadcast(message), self.main_loop
            )

    async def handle_message(self, ws: WebSocket, message: str):
        """Incoming client message hook; subclasses override."""
        print(f"[WSBase] Received message from client: {message}")
