"""
Shared fixtures for the Conquian engine tests.
"""

import pytest

from conquian_engine.engine import add_player, create_game, select_seat, toggle_ready
from conquian_engine.models import Card, GameState, Player


def make_card(suit: str, rank: str) -> Card:
    """Card with a readable, deterministic id."""
    return Card(suit=suit, rank=rank, id=f"{suit}-{rank}")


@pytest.fixture
def card():
    return make_card


@pytest.fixture
def ready_table():
    """Factory for a waiting table with `count` seated, ready players."""
    def build(count=4, game_id="test-game"):
        state = create_game(game_id, created_at=0.0)
        for i in range(count):
            state = add_player(state, f"player{i}", f"Player {i}")
            state = select_seat(state, f"player{i}", i)
            state = toggle_ready(state, f"player{i}")
        return state
    return build


@pytest.fixture
def playing_state():
    """Three players mid-game with hand-picked hands. Alice is to act."""
    players = [
        Player(
            id="alice", name="Alice", is_host=True, position=0, seat=0, ready=True,
            hand=[
                make_card('hearts', '5'), make_card('hearts', '6'),
                make_card('hearts', '7'), make_card('clubs', '2'),
                make_card('spades', 'K'),
            ],
        ),
        Player(
            id="bob", name="Bob", position=1, seat=1, ready=True,
            hand=[
                make_card('diamonds', '3'), make_card('clubs', '3'),
                make_card('spades', '3'), make_card('hearts', 'J'),
            ],
        ),
        Player(
            id="carol", name="Carol", position=2, seat=2, ready=True,
            hand=[
                make_card('diamonds', 'A'), make_card('clubs', 'Q'),
                make_card('spades', '7'),
            ],
        ),
    ]
    return GameState(
        game_id="test-game",
        players=players,
        draw_pile=[make_card('hearts', '4'), make_card('clubs', '4'), make_card('spades', '5')],
        discard_pile=[make_card('diamonds', '7')],
        status='playing',
        current_player_index=0,
    )
