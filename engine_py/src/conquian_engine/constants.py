"""Game constants and utilities"""

from typing import Dict

SUITS = ['hearts', 'diamonds', 'clubs', 'spades']
RANKS = ['A', '2', '3', '4', '5', '6', '7', 'J', 'Q', 'K']

# Ace is low and 7 connects to Jack; no King-Ace wrap.
RANK_VALUES: Dict[str, int] = {
    'A': 1,
    '2': 2,
    '3': 3,
    '4': 4,
    '5': 5,
    '6': 6,
    '7': 7,
    'J': 10,
    'Q': 11,
    'K': 12,
}

SEVEN_VALUE = RANK_VALUES['7']
JACK_VALUE = RANK_VALUES['J']

DECK_SIZE = len(SUITS) * len(RANKS)

# Table defaults (overridable through RuleConfig)
CARDS_PER_PLAYER = 8
MAX_SEATS = 4
MIN_PLAYERS = 2
WIN_THRESHOLD = 9

# Game status
STATUS_WAITING = 'waiting'
STATUS_EXCHANGING = 'exchanging'
STATUS_PLAYING = 'playing'
STATUS_FINISHED = 'finished'

# Meld types
MELD_SET = 'set'
MELD_SEQUENCE = 'sequence'

DEFAULT_TABLE_ID = 'main-table'
