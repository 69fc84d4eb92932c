"""
Game service: runs engine transitions against the game store.

Every action reads the current snapshot, applies one engine transition and
writes the result with compare-and-set. If another writer got there first the
whole read-transition-write cycle is retried against the fresh snapshot.
"""

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from . import engine, exchange
from .constants import DEFAULT_TABLE_ID, STATUS_WAITING
from .errors import ConflictError, ErrorCode, raise_error
from .models import Card, GameState, Meld
from .rules import RuleConfig, default_rules
from .store import GameStore, Listener, MemoryGameStore

logger = logging.getLogger(__name__)

Transition = Callable[[GameState], GameState]


@dataclass
class DrawResult:
    state: GameState
    card: Optional[Card]
    should_meld: Optional[Meld] = None  # advisory


class GameService:
    """Orchestrates engine transitions over a GameStore."""

    def __init__(
        self,
        store: Optional[GameStore] = None,
        rules: RuleConfig = default_rules,
        seed: Optional[int] = None,
    ):
        self.store = store or MemoryGameStore()
        self.rules = rules
        self.seed = seed

    # Store access ------------------------------------------------------

    def get_state(self, game_id: str) -> GameState:
        state = self.store.get(game_id)
        if state is None:
            raise_error(ErrorCode.GAME_NOT_FOUND, f"Game {game_id} not found")
        return state

    def create_game(self, game_id: str) -> GameState:
        return self.store.create(engine.create_game(game_id))

    def get_or_create_table(self, game_id: str = DEFAULT_TABLE_ID) -> GameState:
        """The shared table every player joins."""
        state = self.store.get(game_id)
        if state is not None:
            return state
        return self.create_game(game_id)

    def subscribe(self, game_id: str, listener: Listener) -> Callable[[], None]:
        return self.store.subscribe(game_id, listener)

    def _transact(self, game_id: str, action: str, transition: Transition) -> GameState:
        last_conflict: Optional[ConflictError] = None
        for attempt in range(1, self.rules.max_write_attempts + 1):
            state = self.get_state(game_id)
            new_state = transition(state)
            if new_state is state:
                return state
            try:
                stored = self.store.compare_and_set(new_state, expected_version=state.version)
            except ConflictError as e:
                last_conflict = e
                logger.warning(
                    f"{action} on {game_id} lost a write race "
                    f"(attempt {attempt}/{self.rules.max_write_attempts})"
                )
                continue
            logger.info(f"{action} on {game_id}: {state.status} -> {stored.status} (v{stored.version})")
            return stored
        raise last_conflict

    # Lobby -------------------------------------------------------------

    def join_game(self, game_id: str, player_id: str, name: str) -> GameState:
        return self._transact(
            game_id, "join",
            lambda state: engine.add_player(state, player_id, name),
        )

    def leave_game(self, game_id: str, player_id: str) -> Optional[GameState]:
        """Remove a player; the game is deleted once nobody is left."""
        state = self._transact(
            game_id, "leave",
            lambda state: engine.remove_player(state, player_id),
        )
        if not state.players:
            try:
                self.store.delete(game_id, expected_version=state.version)
            except ConflictError:
                logger.info(f"Game {game_id} changed after its last player left, keeping it")
                return self.get_state(game_id)
            return None
        return state

    def select_seat(self, game_id: str, player_id: str, seat: int) -> GameState:
        return self._transact(
            game_id, "select_seat",
            lambda state: engine.select_seat(state, player_id, seat, self.rules),
        )

    def toggle_ready(self, game_id: str, player_id: str) -> GameState:
        """Flip ready; starts the game when auto_start is on and everyone is ready."""
        def transition(state: GameState) -> GameState:
            new_state = engine.toggle_ready(state, player_id)
            if (self.rules.auto_start
                    and new_state.status == STATUS_WAITING
                    and engine.can_start_game(new_state, self.rules)):
                new_state = engine.start_game(new_state, self.seed, self.rules)
            return new_state

        return self._transact(game_id, "toggle_ready", transition)

    def start_game(self, game_id: str) -> GameState:
        return self._transact(
            game_id, "start",
            lambda state: engine.start_game(state, self.seed, self.rules),
        )

    # Exchange ----------------------------------------------------------

    def select_exchange_card(self, game_id: str, player_id: str, card_id: str) -> GameState:
        """Choose the card to pass; completes the exchange once everyone has chosen."""
        def transition(state: GameState) -> GameState:
            new_state = exchange.select_exchange_card(state, player_id, card_id)
            if self.rules.auto_complete_exchange and exchange.all_selections_made(new_state):
                new_state = exchange.complete_exchange(new_state)
            return new_state

        return self._transact(game_id, "select_exchange_card", transition)

    def complete_exchange(self, game_id: str) -> GameState:
        return self._transact(game_id, "complete_exchange", exchange.complete_exchange)

    # Play --------------------------------------------------------------

    def draw_card(self, game_id: str, player_id: str, from_discard: bool = False) -> DrawResult:
        state = self._transact(
            game_id, "draw",
            lambda state: engine.draw_card(state, player_id, from_discard),
        )
        player = state.get_player(player_id)
        card = player.hand[-1] if player and player.hand else None
        return DrawResult(state=state, card=card, should_meld=engine.draw_hint(state, player_id))

    def discard_card(self, game_id: str, player_id: str, card_id: str) -> GameState:
        return self._transact(
            game_id, "discard",
            lambda state: engine.discard_card(state, player_id, card_id),
        )

    def create_meld(self, game_id: str, player_id: str, card_ids: List[str]) -> GameState:
        return self._transact(
            game_id, "create_meld",
            lambda state: engine.create_meld(state, player_id, card_ids, rules=self.rules),
        )

    def add_card_to_meld(self, game_id: str, player_id: str, card_id: str, meld_id: str) -> GameState:
        return self._transact(
            game_id, "add_to_meld",
            lambda state: engine.add_card_to_meld(state, player_id, card_id, meld_id, self.rules),
        )
