"""
Conquian game engine.

Pure game-state transitions for four-player Conquian plus the store,
service and websocket glue that runs them against a shared game document.
"""

__version__ = "0.1.0"
