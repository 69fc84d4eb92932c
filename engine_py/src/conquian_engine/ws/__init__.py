"""
WebSocket server and event handling for the Conquian table.
"""

from .server import ConnectionManager, create_app

__all__ = ["ConnectionManager", "create_app"]
