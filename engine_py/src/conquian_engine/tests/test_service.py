"""
Tests for the game service: store round trips, retries and automation.
"""

import pytest

from conquian_engine.constants import DEFAULT_TABLE_ID
from conquian_engine.engine import add_player
from conquian_engine.errors import (
    ConflictError, ErrorCode, NotFoundError, PhaseError, TurnError
)
from conquian_engine.rules import create_rules
from conquian_engine.service import GameService
from conquian_engine.store import MemoryGameStore


class RacingStore(MemoryGameStore):
    """Store that lets another writer sneak in before the next `races` writes."""

    def __init__(self, races=1):
        super().__init__()
        self.races = races
        self.attempts = 0

    def compare_and_set(self, state, expected_version):
        self.attempts += 1
        if self.races > 0:
            self.races -= 1
            current = self.get(state.game_id)
            intruder = f"intruder{self.races}"
            super().compare_and_set(add_player(current, intruder, "Intruder"), current.version)
        return super().compare_and_set(state, expected_version)


def seat_and_ready(service, game_id, count):
    for i in range(count):
        service.join_game(game_id, f"player{i}", f"Player {i}")
        service.select_seat(game_id, f"player{i}", i)
    state = None
    for i in range(count):
        state = service.toggle_ready(game_id, f"player{i}")
    return state


def test_get_or_create_table():
    service = GameService()
    table = service.get_or_create_table()
    assert table.game_id == DEFAULT_TABLE_ID
    assert table.version == 1
    assert service.get_or_create_table().version == 1


def test_get_missing_game():
    with pytest.raises(NotFoundError) as exc_info:
        GameService().get_state("missing")
    assert exc_info.value.code == ErrorCode.GAME_NOT_FOUND


def test_join_is_idempotent():
    service = GameService()
    service.create_game("g")
    first = service.join_game("g", "p1", "Alice")
    again = service.join_game("g", "p1", "Alice")
    assert again.version == first.version


def test_conflict_is_retried():
    store = RacingStore(races=1)
    service = GameService(store=store)
    service.create_game("g")

    state = service.join_game("g", "p1", "Alice")
    assert store.attempts == 2
    assert {p.id for p in state.players} == {"intruder0", "p1"}


def test_conflict_surfaces_after_max_attempts():
    store = RacingStore(races=10)
    service = GameService(store=store, rules=create_rules(max_write_attempts=3))
    service.create_game("g")

    with pytest.raises(ConflictError):
        service.join_game("g", "p1", "Alice")
    assert store.attempts == 3


def test_auto_start_when_everyone_is_ready():
    service = GameService(seed=1)
    service.create_game("g")
    state = seat_and_ready(service, "g", 3)

    assert state.status == "exchanging"
    assert all(len(p.hand) == 8 for p in state.players)


def test_manual_start():
    service = GameService(rules=create_rules(auto_start=False), seed=1)
    service.create_game("g")
    state = seat_and_ready(service, "g", 2)
    assert state.status == "waiting"

    state = service.start_game("g")
    assert state.status == "exchanging"


def test_auto_complete_exchange():
    service = GameService(seed=2)
    service.create_game("g")
    state = seat_and_ready(service, "g", 2)

    for player in state.players:
        state = service.select_exchange_card("g", player.id, player.hand[0].id)
    assert state.status == "playing"


def test_manual_exchange():
    service = GameService(rules=create_rules(auto_complete_exchange=False), seed=2)
    service.create_game("g")
    state = seat_and_ready(service, "g", 2)

    for player in state.players:
        state = service.select_exchange_card("g", player.id, player.hand[0].id)
    assert state.status == "exchanging"
    assert service.complete_exchange("g").status == "playing"


def test_draw_and_discard():
    service = GameService(seed=3)
    service.create_game("g")
    state = seat_and_ready(service, "g", 2)
    for player in state.players:
        state = service.select_exchange_card("g", player.id, player.hand[0].id)

    current = state.current_player
    result = service.draw_card("g", current.id)
    assert result.card is not None
    assert result.state.get_player(current.id).hand[-1] == result.card
    assert result.should_meld is None

    state = service.discard_card("g", current.id, result.card.id)
    assert state.current_player_index == 1

    with pytest.raises(TurnError):
        service.draw_card("g", current.id)


def test_leave_last_player_deletes_game():
    service = GameService()
    service.create_game("g")
    service.join_game("g", "p1", "Alice")
    service.join_game("g", "p2", "Bob")

    state = service.leave_game("g", "p1")
    assert state.players[0].is_host

    assert service.leave_game("g", "p2") is None
    assert service.store.get("g") is None


def test_subscribe_sees_service_writes():
    service = GameService()
    seen = []
    service.subscribe("g", seen.append)

    service.create_game("g")
    service.join_game("g", "p1", "Alice")
    assert [s.version for s in seen] == [1, 2]


class JoinBeforeDeleteStore(MemoryGameStore):
    """Store where a newcomer joins just before every delete."""

    def delete(self, game_id, expected_version=None):
        current = self.get(game_id)
        if current is not None:
            self.compare_and_set(add_player(current, "newcomer", "Newcomer"), current.version)
        return super().delete(game_id, expected_version)


def test_leave_keeps_game_joined_meanwhile():
    service = GameService(store=JoinBeforeDeleteStore())
    service.create_game("g")
    service.join_game("g", "p1", "Alice")

    state = service.leave_game("g", "p1")
    assert state is not None
    assert [p.id for p in state.players] == ["newcomer"]
    assert service.store.get("g") is not None


def test_late_player_cannot_stall_the_exchange():
    service = GameService(seed=4)
    service.create_game("g")
    state = seat_and_ready(service, "g", 2)
    assert state.status == "exchanging"

    with pytest.raises(PhaseError) as exc_info:
        service.join_game("g", "late", "Late")
    assert exc_info.value.code == ErrorCode.ALREADY_STARTED

    for player in state.players:
        state = service.select_exchange_card("g", player.id, player.hand[0].id)
    assert state.status == "playing"
    assert [p.id for p in state.players] == ["player0", "player1"]


def test_spectator_never_gets_the_turn():
    service = GameService(seed=5)
    service.create_game("g")
    state = seat_and_ready(service, "g", 2)
    for player in state.players:
        state = service.select_exchange_card("g", player.id, player.hand[0].id)

    with pytest.raises(PhaseError):
        service.join_game("g", "spectator", "Spectator")
    # Players already at the table can still reconnect
    assert service.join_game("g", "player0", "Player 0").version == state.version

    current = state.current_player
    result = service.draw_card("g", current.id)
    state = service.discard_card("g", current.id, result.card.id)

    assert state.current_player.id in ("player0", "player1")
    assert state.current_player.id != current.id
    assert len(state.current_player.hand) == 8
