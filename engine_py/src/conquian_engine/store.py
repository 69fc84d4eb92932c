"""
Versioned game document store.

Each game is one JSON document keyed by game id. Writes are compare-and-set
on the document version so that concurrent writers never overwrite each
other; the losing writer gets a VersionConflict and must re-read.
"""

import logging
import threading
from abc import ABC, abstractmethod
from collections import defaultdict
from dataclasses import replace
from typing import Callable, Dict, List, Optional

from .errors import ErrorCode, raise_error
from .models import GameState
from .serialization import dumps, loads

logger = logging.getLogger(__name__)

Listener = Callable[[Optional[GameState]], None]


class GameStore(ABC):
    """Abstract storage for game documents."""

    @abstractmethod
    def create(self, state: GameState) -> GameState:
        """
        Store a new game document at version 1.

        Returns the existing game unchanged if the id is already taken.
        """

    @abstractmethod
    def get(self, game_id: str) -> Optional[GameState]:
        """Read the current snapshot, or None if the game does not exist."""

    @abstractmethod
    def compare_and_set(self, state: GameState, expected_version: int) -> GameState:
        """
        Replace the document if its version still equals expected_version.

        Returns the stored snapshot with its new version. Raises a
        VERSION_CONFLICT ConflictError if another write got there first and
        GAME_NOT_FOUND if the document is gone.
        """

    @abstractmethod
    def delete(self, game_id: str, expected_version: Optional[int] = None) -> bool:
        """
        Delete a game. Returns False if it did not exist.

        With expected_version the delete is compare-and-set too: a
        VERSION_CONFLICT ConflictError is raised if the game has moved on.
        """

    @abstractmethod
    def subscribe(self, game_id: str, listener: Listener) -> Callable[[], None]:
        """
        Call listener with every new snapshot of the game (None on delete).

        Returns a function that removes the listener.
        """


class MemoryGameStore(GameStore):
    """In-process store holding serialized documents, one lock per game."""

    def __init__(self):
        self._documents: Dict[str, bytes] = {}
        self._locks = defaultdict(threading.Lock)
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    def create(self, state: GameState) -> GameState:
        with self._locks[state.game_id]:
            existing = self._documents.get(state.game_id)
            if existing is not None:
                return loads(existing)
            self._documents[state.game_id] = dumps(replace(state, version=1))
            stored = loads(self._documents[state.game_id])
        logger.info(f"Created game {state.game_id}")
        self._notify(state.game_id, stored)
        return stored

    def get(self, game_id: str) -> Optional[GameState]:
        raw = self._documents.get(game_id)
        return loads(raw) if raw is not None else None

    def compare_and_set(self, state: GameState, expected_version: int) -> GameState:
        with self._locks[state.game_id]:
            raw = self._documents.get(state.game_id)
            if raw is None:
                raise_error(ErrorCode.GAME_NOT_FOUND, f"Game {state.game_id} not found")

            current_version = loads(raw).version
            if current_version != expected_version:
                raise_error(
                    ErrorCode.VERSION_CONFLICT,
                    f"Game {state.game_id} is at version {current_version}, "
                    f"expected {expected_version}"
                )

            self._documents[state.game_id] = dumps(replace(state, version=expected_version + 1))
            stored = loads(self._documents[state.game_id])
        self._notify(state.game_id, stored)
        return stored

    def delete(self, game_id: str, expected_version: Optional[int] = None) -> bool:
        with self._locks[game_id]:
            raw = self._documents.get(game_id)
            if raw is not None and expected_version is not None:
                current_version = loads(raw).version
                if current_version != expected_version:
                    raise_error(
                        ErrorCode.VERSION_CONFLICT,
                        f"Game {game_id} is at version {current_version}, "
                        f"expected {expected_version}"
                    )
            removed = self._documents.pop(game_id, None) is not None
        if removed:
            logger.info(f"Deleted game {game_id}")
            self._notify(game_id, None)
        return removed

    def subscribe(self, game_id: str, listener: Listener) -> Callable[[], None]:
        self._listeners[game_id].append(listener)

        def unsubscribe():
            if listener in self._listeners.get(game_id, []):
                self._listeners[game_id].remove(listener)

        return unsubscribe

    def _notify(self, game_id: str, snapshot: Optional[GameState]):
        for listener in list(self._listeners.get(game_id, [])):
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"Listener for game {game_id} failed")
