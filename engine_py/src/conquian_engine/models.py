"""Game models and data structures"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .constants import STATUS_WAITING


@dataclass(frozen=True)
class Card:
    suit: str
    rank: str
    id: str


@dataclass
class Player:
    id: str
    name: str
    hand: List[Card] = field(default_factory=list)
    is_host: bool = False
    position: int = 0  # matches seat once seated
    seat: Optional[int] = None  # 0-3, None while standing
    ready: bool = False

    def has_card(self, card_id: str) -> bool:
        return any(card.id == card_id for card in self.hand)

    def get_card(self, card_id: str) -> Optional[Card]:
        for card in self.hand:
            if card.id == card_id:
                return card
        return None


@dataclass
class Meld:
    id: str
    type: str  # set|sequence
    cards: List[Card] = field(default_factory=list)
    player_id: str = ''


@dataclass
class GameState:
    game_id: str
    players: List[Player] = field(default_factory=list)
    current_player_index: int = 0
    draw_pile: List[Card] = field(default_factory=list)
    discard_pile: List[Card] = field(default_factory=list)
    melds: List[Meld] = field(default_factory=list)
    status: str = STATUS_WAITING  # waiting|exchanging|playing|finished
    winner_id: Optional[str] = None
    created_at: float = 0.0
    exchange_cards: Optional[Dict[str, str]] = None  # player_id -> card_id
    version: int = 0  # stamped by the store on every write

    def get_player(self, player_id: str) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_index(self, player_id: str) -> int:
        for index, player in enumerate(self.players):
            if player.id == player_id:
                return index
        return -1

    def get_meld(self, meld_id: str) -> Optional[Meld]:
        for meld in self.melds:
            if meld.id == meld_id:
                return meld
        return None

    @property
    def current_player(self) -> Optional[Player]:
        if 0 <= self.current_player_index < len(self.players):
            return self.players[self.current_player_index]
        return None
