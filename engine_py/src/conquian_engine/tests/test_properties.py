"""
Whole-game properties checked over seeded plays.
"""

import pytest

from conquian_engine.constants import DECK_SIZE, RANKS, SUITS
from conquian_engine.deck import all_cards, validate_card_conservation
from conquian_engine.engine import (
    add_card_to_meld, create_meld, discard_card, draw_card, start_game
)
from conquian_engine.exchange import complete_exchange, select_exchange_card
from conquian_engine.models import GameState, Player
from conquian_engine.validate import count_melded_cards


def play_until_draw_pile_empty(state, check):
    """Every player draws from the pile and discards the drawn card."""
    while state.draw_pile and state.status == "playing":
        player = state.current_player
        state = draw_card(state, player.id, from_discard=False)
        check(state)
        drawn = state.get_player(player.id).hand[-1]
        state = discard_card(state, player.id, drawn.id)
        check(state)
    return state


def dealt_and_exchanged(ready_table, players, seed):
    state = start_game(ready_table(players), seed=seed)
    for player in state.players:
        state = select_exchange_card(state, player.id, player.hand[-1].id)
    return complete_exchange(state)


@pytest.mark.parametrize("players,seed", [(2, 1), (3, 7), (4, 42)])
def test_card_conservation_through_play(ready_table, players, seed):
    state = dealt_and_exchanged(ready_table, players, seed)
    assert validate_card_conservation(state)

    def check(s):
        assert len(all_cards(s)) == DECK_SIZE
        assert validate_card_conservation(s)

    play_until_draw_pile_empty(state, check)


@pytest.mark.parametrize("players", [2, 3, 4])
def test_turn_order_is_counter_clockwise(ready_table, players):
    state = dealt_and_exchanged(ready_table, players, seed=11)

    indices = [state.current_player_index]
    for _ in range(players * 2):
        player = state.current_player
        state = draw_card(state, player.id, from_discard=False)
        state = discard_card(state, player.id, state.get_player(player.id).hand[-1].id)
        indices.append(state.current_player_index)

    for previous, current in zip(indices, indices[1:]):
        assert current == (previous - 1 + players) % players


def test_hand_sizes_after_deal(ready_table):
    state = start_game(ready_table(4), seed=3)
    assert [len(p.hand) for p in state.players] == [8, 8, 8, 8]
    assert len(state.draw_pile) == DECK_SIZE - 32


def test_seats_stay_unique(ready_table):
    state = dealt_and_exchanged(ready_table, 4, seed=2)
    seats = [p.seat for p in state.players if p.seat is not None]
    assert len(seats) == len(set(seats))


def test_no_winner_without_melds(ready_table):
    state = dealt_and_exchanged(ready_table, 3, seed=8)
    state = play_until_draw_pile_empty(state, lambda s: None)

    assert state.status == "playing"
    assert state.winner_id is None
    assert all(count_melded_cards(state.melds, p.id) == 0 for p in state.players)


def fully_dealt_table(card):
    """All 40 cards placed by hand so every move below is known to be legal."""
    hands = {
        "alice": [('hearts', 'A'), ('hearts', '2'), ('hearts', '3'), ('diamonds', 'K'),
                  ('clubs', '5'), ('clubs', '6'), ('spades', '6'), ('diamonds', '6')],
        "bob": [('clubs', '4'), ('spades', '4'), ('diamonds', '4'), ('hearts', '7'),
                ('clubs', '7'), ('spades', '7'), ('diamonds', '7'), ('hearts', 'J')],
        "carol": [('hearts', 'K'), ('clubs', 'K'), ('spades', 'K'), ('hearts', 'Q'),
                  ('clubs', 'Q'), ('spades', 'Q'), ('clubs', 'A'), ('spades', 'A')],
    }
    dealt = {pair for pairs in hands.values() for pair in pairs}
    rest = [
        card(suit, rank) for suit in SUITS for rank in RANKS
        if (suit, rank) not in dealt and (suit, rank) != ('hearts', '4')
    ]
    players = [
        Player(id=pid, name=pid.title(), is_host=seat == 0, position=seat, seat=seat,
               ready=True, hand=[card(suit, rank) for suit, rank in pairs])
        for seat, (pid, pairs) in enumerate(hands.items())
    ]
    return GameState(
        game_id="full",
        players=players,
        draw_pile=[card('hearts', '4')] + rest,
        status="playing",
    )


def test_card_conservation_through_melds_and_forced_discard(card):
    state = fully_dealt_table(card)
    assert validate_card_conservation(state)

    steps = [
        lambda s: create_meld(s, "carol", ["hearts-K", "clubs-K", "spades-K"], meld_id="kings"),
        lambda s: create_meld(s, "bob", ["clubs-4", "spades-4", "diamonds-4"], meld_id="fours"),
        lambda s: create_meld(s, "alice", ["hearts-A", "hearts-2", "hearts-3"], meld_id="run"),
        lambda s: draw_card(s, "alice", from_discard=False),
        lambda s: add_card_to_meld(s, "alice", "hearts-4", "run"),
        # Carol is next and holds the kings, so the discard lands in her hand
        lambda s: discard_card(s, "alice", "diamonds-K"),
        lambda s: add_card_to_meld(s, "carol", "diamonds-K", "kings"),
        lambda s: discard_card(s, "carol", "clubs-Q"),
        lambda s: draw_card(s, "bob", from_discard=True),
    ]
    for step in steps:
        state = step(state)
        assert validate_card_conservation(state)

    assert [c.id for c in state.get_meld("run").cards] == [
        "hearts-A", "hearts-2", "hearts-3", "hearts-4"
    ]
    assert len(state.get_meld("kings").cards) == 4
    assert state.get_player("bob").has_card("clubs-Q")
    assert state.discard_pile == []
    assert state.status == "playing"
