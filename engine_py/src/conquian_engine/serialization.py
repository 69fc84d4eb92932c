"""
State serialization and sanitization utilities.

The stored game document uses camelCase keys. Remote stores drop empty
collections and null fields, so every field has a default here and the engine
always receives fully populated structures.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Literal, Optional

import orjson
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from .constants import STATUS_WAITING
from .models import Card, GameState, Meld, Player


class _Document(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CardDocument(_Document):
    suit: Literal['hearts', 'diamonds', 'clubs', 'spades']
    rank: Literal['A', '2', '3', '4', '5', '6', '7', 'J', 'Q', 'K']
    id: str


class PlayerDocument(_Document):
    id: str
    name: str = ''
    hand: List[CardDocument] = []
    is_host: bool = False
    position: int = 0
    seat: Optional[int] = None
    ready: bool = False

    @field_validator('hand', mode='before')
    @classmethod
    def default_hand(cls, v):
        return [] if v is None else v


class MeldDocument(_Document):
    id: str
    type: Literal['set', 'sequence']
    cards: List[CardDocument] = []
    player_id: str = ''

    @field_validator('cards', mode='before')
    @classmethod
    def default_cards(cls, v):
        return [] if v is None else v


class GameDocument(_Document):
    game_id: str
    players: List[PlayerDocument] = []
    current_player_index: int = 0
    draw_pile: List[CardDocument] = []
    discard_pile: List[CardDocument] = []
    melds: List[MeldDocument] = []
    status: Literal['waiting', 'exchanging', 'playing', 'finished'] = STATUS_WAITING
    winner_id: Optional[str] = None
    created_at: float = 0.0
    exchange_cards: Optional[Dict[str, str]] = None
    version: int = 0

    @field_validator('players', 'draw_pile', 'discard_pile', 'melds', mode='before')
    @classmethod
    def default_collections(cls, v):
        return [] if v is None else v

    @field_validator('status', mode='before')
    @classmethod
    def default_status(cls, v):
        return STATUS_WAITING if v is None else v

    @field_validator('current_player_index', 'version', mode='before')
    @classmethod
    def default_counter(cls, v):
        return 0 if v is None else v


def _card(doc: CardDocument) -> Card:
    return Card(suit=doc.suit, rank=doc.rank, id=doc.id)


def to_document(state: GameState) -> Dict[str, Any]:
    """Serialize a game state to the camelCase document shape."""
    return GameDocument.model_validate(asdict(state)).model_dump(by_alias=True)


def from_document(data: Dict[str, Any]) -> GameState:
    """
    Build a GameState from a stored document, filling in missing fields.

    Raises pydantic.ValidationError for documents that cannot be repaired
    (unknown suits or statuses, missing ids).
    """
    doc = GameDocument.model_validate(data)
    return GameState(
        game_id=doc.game_id,
        players=[
            Player(
                id=p.id,
                name=p.name,
                hand=[_card(c) for c in p.hand],
                is_host=p.is_host,
                position=p.position,
                seat=p.seat,
                ready=p.ready,
            )
            for p in doc.players
        ],
        current_player_index=doc.current_player_index,
        draw_pile=[_card(c) for c in doc.draw_pile],
        discard_pile=[_card(c) for c in doc.discard_pile],
        melds=[
            Meld(
                id=m.id,
                type=m.type,
                cards=[_card(c) for c in m.cards],
                player_id=m.player_id,
            )
            for m in doc.melds
        ],
        status=doc.status,
        winner_id=doc.winner_id,
        created_at=doc.created_at,
        exchange_cards=dict(doc.exchange_cards) if doc.exchange_cards is not None else None,
        version=doc.version,
    )


def dumps(state: GameState) -> bytes:
    return orjson.dumps(to_document(state))


def loads(raw: bytes) -> GameState:
    return from_document(orjson.loads(raw))


def sanitize_state(state: GameState, viewer_id: Optional[str] = None) -> Dict[str, Any]:
    """
    Sanitize game state for transmission to clients.

    Args:
        state: Game state to sanitize
        viewer_id: ID of the player viewing the state (to show their cards)

    Returns:
        Document-shaped dict with other players' hands and the draw pile
        reduced to counts
    """
    sanitized = to_document(state)

    for player in sanitized["players"]:
        player["handCount"] = len(player["hand"])
        if player["id"] != viewer_id:
            del player["hand"]

    sanitized["drawPileCount"] = len(sanitized["drawPile"])
    del sanitized["drawPile"]

    exchange_cards = sanitized.get("exchangeCards")
    if exchange_cards is not None:
        # Other players only learn who has chosen, not what
        sanitized["exchangeSelected"] = sorted(exchange_cards.keys())
        sanitized["exchangeCards"] = (
            {viewer_id: exchange_cards[viewer_id]} if viewer_id in exchange_cards else {}
        )

    return sanitized


def serialize_player_for_list(player: Player) -> Dict[str, Any]:
    """Serialize player for the lobby seat list."""
    return {
        "id": player.id,
        "name": player.name,
        "seat": player.seat,
        "ready": player.ready,
        "isHost": player.is_host,
    }


def get_public_game_info(state: GameState) -> Dict[str, Any]:
    """Get public information about a game for listings."""
    return {
        "gameId": state.game_id,
        "status": state.status,
        "playerCount": len(state.players),
        "players": [serialize_player_for_list(p) for p in state.players],
    }
