"""
Log WebSocket
=============

Streams service diagnostics to clients connected on /logs.

Message Format:
--------------
    {
        "msg_type": "log" | "error" | "warning",
        "message": "..."
    }

Typical senders:
    log_from_thread("[MAP_EVENTS] Account 'acme' not found", "error")
    log_from_thread("[GEOZONE] Lookup failed for acme: ...", "error")
"""

from typing import Dict, Any
from fastapi import WebSocket
from .wsBase import WebSocketManager


def log_from_thread(message: str, msg_type: str = "log"):
    """
    Broadcast a diagnostic to all /logs clients. Safe from any thread.

    Args:
        message: Text of the diagnostic
        msg_type: "log" (default), "error" or "warning"

    With no listener the message only goes to the console.
    """
    if log_ws_manager.has_clients:
        payload: Dict[str, Any] = {"msg_type": msg_type, "message": str(message)}
        log_ws_manager.send_from_thread(payload)
    else:
        print(f"[LOG-BROADCAST] No log clients connected. Message: {message}")


class LogWebSocketManager(WebSocketManager):
    """Manager for the /logs endpoint. Clients are listen-only."""

    async def handle_message(self, ws: WebSocket, message: str):
        print(f"[LOG-WS] Received message from client: {message}")


# ============================================================
# GLOBAL LOG WEBSOCKET MANAGER INSTANCE
# ============================================================
log_ws_manager = LogWebSocketManager()
