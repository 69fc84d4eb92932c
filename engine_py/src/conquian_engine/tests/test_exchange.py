"""
Tests for the pre-play card exchange.
"""

import pytest

from conquian_engine.engine import start_game
from conquian_engine.errors import ErrorCode, NotFoundError, PhaseError, RuleViolation, TurnError
from conquian_engine.exchange import (
    all_selections_made, complete_exchange, pending_selections, select_exchange_card
)


@pytest.fixture
def exchanging_state(playing_state):
    """The three-player table from playing_state, before play starts."""
    playing_state.status = "exchanging"
    playing_state.exchange_cards = {}
    return playing_state


def test_exchange_passes_clockwise(exchanging_state):
    """Test A gets C's card, B gets A's and C gets B's."""
    state = select_exchange_card(exchanging_state, "alice", "spades-K")
    state = select_exchange_card(state, "bob", "hearts-J")
    state = select_exchange_card(state, "carol", "clubs-Q")

    state = complete_exchange(state)

    alice, bob, carol = (state.get_player(pid) for pid in ("alice", "bob", "carol"))
    assert alice.has_card("clubs-Q") and not alice.has_card("spades-K")
    assert bob.has_card("spades-K") and not bob.has_card("hearts-J")
    assert carol.has_card("hearts-J") and not carol.has_card("clubs-Q")

    assert [len(p.hand) for p in state.players] == [5, 4, 3]
    assert state.status == "playing"
    assert state.exchange_cards is None
    assert state.current_player_index == 0


def test_exchange_follows_seat_order_not_join_order(exchanging_state):
    # Carol moves to the first seat; join order is unchanged
    exchanging_state.get_player("carol").seat = 0
    exchanging_state.get_player("alice").seat = 3

    state = select_exchange_card(exchanging_state, "alice", "spades-K")
    state = select_exchange_card(state, "bob", "hearts-J")
    state = select_exchange_card(state, "carol", "clubs-Q")
    state = complete_exchange(state)

    # Seat order is carol(0), bob(1), alice(3)
    assert state.get_player("bob").has_card("clubs-Q")
    assert state.get_player("alice").has_card("hearts-J")
    assert state.get_player("carol").has_card("spades-K")


def test_selection_can_be_changed(exchanging_state):
    state = select_exchange_card(exchanging_state, "alice", "spades-K")
    state = select_exchange_card(state, "alice", "clubs-2")
    assert state.exchange_cards == {"alice": "clubs-2"}


def test_pending_selections(exchanging_state):
    assert pending_selections(exchanging_state) == {
        "alice": "Alice", "bob": "Bob", "carol": "Carol"
    }

    state = select_exchange_card(exchanging_state, "bob", "hearts-J")
    assert set(pending_selections(state)) == {"alice", "carol"}
    assert not all_selections_made(state)

    state = select_exchange_card(state, "alice", "clubs-2")
    state = select_exchange_card(state, "carol", "spades-7")
    assert all_selections_made(state)


def test_complete_exchange_requires_every_selection(exchanging_state):
    state = select_exchange_card(exchanging_state, "alice", "spades-K")
    with pytest.raises(RuleViolation) as exc_info:
        complete_exchange(state)
    assert exc_info.value.code == ErrorCode.INCOMPLETE_SELECTIONS


def test_select_exchange_errors(exchanging_state):
    with pytest.raises(TurnError) as exc_info:
        select_exchange_card(exchanging_state, "alice", "hearts-J")
    assert exc_info.value.code == ErrorCode.CARD_NOT_IN_HAND

    with pytest.raises(NotFoundError):
        select_exchange_card(exchanging_state, "ghost", "hearts-J")

    exchanging_state.status = "playing"
    with pytest.raises(PhaseError) as exc_info:
        select_exchange_card(exchanging_state, "alice", "spades-K")
    assert exc_info.value.code == ErrorCode.NOT_EXCHANGING

    with pytest.raises(PhaseError):
        complete_exchange(exchanging_state)


def test_exchange_after_deal(ready_table):
    state = start_game(ready_table(4), seed=5)
    for player in state.players:
        state = select_exchange_card(state, player.id, player.hand[0].id)
    state = complete_exchange(state)

    assert state.status == "playing"
    assert all(len(p.hand) == 8 for p in state.players)
