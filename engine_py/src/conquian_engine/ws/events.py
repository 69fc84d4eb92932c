"""
WebSocket event models and validation.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError

from ..errors import ErrorCode


class EventType(str, Enum):
    """Inbound event types."""
    JOIN = "join"
    LEAVE = "leave"
    SELECT_SEAT = "select_seat"
    TOGGLE_READY = "toggle_ready"
    START = "start"
    SELECT_EXCHANGE = "select_exchange"
    COMPLETE_EXCHANGE = "complete_exchange"
    DRAW = "draw"
    DISCARD = "discard"
    CREATE_MELD = "create_meld"
    ADD_TO_MELD = "add_to_meld"
    REQUEST_STATE = "request_state"


class OutboundEventType(str, Enum):
    """Outbound event types."""
    JOIN_SUCCESS = "join_success"
    STATE_FULL = "state_full"
    DRAW_RESULT = "draw_result"
    GAME_DELETED = "game_deleted"
    ERROR = "error"


# Inbound event models
class BaseEvent(BaseModel):
    """Base event model."""
    type: EventType


class JoinEvent(BaseEvent):
    """Join game event. A missing player_id gets a generated one."""
    type: EventType = EventType.JOIN
    game_id: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=30)
    player_id: Optional[str] = Field(default=None, min_length=1, max_length=64)


class LeaveEvent(BaseEvent):
    type: EventType = EventType.LEAVE


class SelectSeatEvent(BaseEvent):
    type: EventType = EventType.SELECT_SEAT
    seat: int


class ToggleReadyEvent(BaseEvent):
    type: EventType = EventType.TOGGLE_READY


class StartEvent(BaseEvent):
    type: EventType = EventType.START


class SelectExchangeEvent(BaseEvent):
    """Choose the card to pass during the exchange."""
    type: EventType = EventType.SELECT_EXCHANGE
    card_id: str = Field(..., min_length=1)


class CompleteExchangeEvent(BaseEvent):
    type: EventType = EventType.COMPLETE_EXCHANGE


class DrawEvent(BaseEvent):
    """Draw from the draw pile, or the top of the discard pile."""
    type: EventType = EventType.DRAW
    from_discard: bool = False


class DiscardEvent(BaseEvent):
    type: EventType = EventType.DISCARD
    card_id: str = Field(..., min_length=1)


class CreateMeldEvent(BaseEvent):
    type: EventType = EventType.CREATE_MELD
    card_ids: List[str] = Field(..., min_length=3, max_length=10)


class AddToMeldEvent(BaseEvent):
    type: EventType = EventType.ADD_TO_MELD
    card_id: str = Field(..., min_length=1)
    meld_id: str = Field(..., min_length=1)


class RequestStateEvent(BaseEvent):
    """Request full state event."""
    type: EventType = EventType.REQUEST_STATE


# Union type for all inbound events
InboundEvent = Union[
    JoinEvent,
    LeaveEvent,
    SelectSeatEvent,
    ToggleReadyEvent,
    StartEvent,
    SelectExchangeEvent,
    CompleteExchangeEvent,
    DrawEvent,
    DiscardEvent,
    CreateMeldEvent,
    AddToMeldEvent,
    RequestStateEvent,
]


# Outbound event models
class JoinSuccessEvent(BaseModel):
    """Join success confirmation event."""
    type: OutboundEventType = OutboundEventType.JOIN_SUCCESS
    game_id: str
    player_id: str
    timestamp: float


class StateFullEvent(BaseModel):
    """Full state event, sanitized for the receiving player."""
    type: OutboundEventType = OutboundEventType.STATE_FULL
    state: Dict[str, Any]
    timestamp: float


class DrawResultEvent(BaseModel):
    """Sent to the drawing player only; should_meld is advisory."""
    type: OutboundEventType = OutboundEventType.DRAW_RESULT
    card: Optional[Dict[str, str]] = None
    should_meld: Optional[str] = None
    timestamp: float


class GameDeletedEvent(BaseModel):
    type: OutboundEventType = OutboundEventType.GAME_DELETED
    game_id: str
    timestamp: float


class ErrorEvent(BaseModel):
    """Error event."""
    type: OutboundEventType = OutboundEventType.ERROR
    code: ErrorCode
    message: str
    timestamp: float


OutboundEvent = Union[
    JoinSuccessEvent,
    StateFullEvent,
    DrawResultEvent,
    GameDeletedEvent,
    ErrorEvent,
]


EVENT_MAP = {
    EventType.JOIN: JoinEvent,
    EventType.LEAVE: LeaveEvent,
    EventType.SELECT_SEAT: SelectSeatEvent,
    EventType.TOGGLE_READY: ToggleReadyEvent,
    EventType.START: StartEvent,
    EventType.SELECT_EXCHANGE: SelectExchangeEvent,
    EventType.COMPLETE_EXCHANGE: CompleteExchangeEvent,
    EventType.DRAW: DrawEvent,
    EventType.DISCARD: DiscardEvent,
    EventType.CREATE_MELD: CreateMeldEvent,
    EventType.ADD_TO_MELD: AddToMeldEvent,
    EventType.REQUEST_STATE: RequestStateEvent,
}


def parse_inbound_event(data: Dict[str, Any]) -> InboundEvent:
    """
    Parse raw event data into appropriate event model.

    Raises:
        ValueError: If event type is invalid or data is malformed
    """
    if not isinstance(data, dict):
        raise ValueError("Event must be a JSON object")

    event_type = data.get("type")
    if not event_type:
        raise ValueError("Missing event type")

    try:
        event_type = EventType(event_type)
    except ValueError:
        raise ValueError(f"Invalid event type: {event_type}")

    try:
        return EVENT_MAP[event_type](**data)
    except ValidationError as e:
        raise ValueError(f"Invalid event data: {e}")


def create_error_event(code: ErrorCode, message: str) -> ErrorEvent:
    return ErrorEvent(code=code, message=message, timestamp=time.time())


def create_join_success_event(game_id: str, player_id: str) -> JoinSuccessEvent:
    return JoinSuccessEvent(game_id=game_id, player_id=player_id, timestamp=time.time())


def create_state_full_event(state: Dict[str, Any]) -> StateFullEvent:
    return StateFullEvent(state=state, timestamp=time.time())


def create_draw_result_event(
    card: Optional[Dict[str, str]],
    should_meld: Optional[str],
) -> DrawResultEvent:
    return DrawResultEvent(card=card, should_meld=should_meld, timestamp=time.time())


def create_game_deleted_event(game_id: str) -> GameDeletedEvent:
    return GameDeletedEvent(game_id=game_id, timestamp=time.time())
