"""
FastAPI WebSocket server for the Conquian table.

The server is glue: it parses inbound events, calls the GameService and
pushes sanitized snapshots to every connection at the same game.
"""

import logging
import os
import uuid
from collections import defaultdict
from typing import Dict, Optional, Set, Tuple

import orjson
from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .. import __version__
from ..errors import ErrorCode, GameError
from ..models import GameState
from ..serialization import get_public_game_info, sanitize_state
from ..service import GameService
from .events import (
    AddToMeldEvent, CompleteExchangeEvent, CreateMeldEvent, DiscardEvent,
    DrawEvent, JoinEvent, LeaveEvent, RequestStateEvent, SelectExchangeEvent,
    SelectSeatEvent, StartEvent, ToggleReadyEvent, create_draw_result_event,
    create_error_event, create_game_deleted_event, create_join_success_event,
    create_state_full_event, parse_inbound_event
)

logger = logging.getLogger(__name__)

ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")


class ConnectionManager:
    """Manages WebSocket connections and broadcasting."""

    def __init__(self):
        self.game_connections: Dict[str, Set[WebSocket]] = defaultdict(set)
        self.connection_players: Dict[WebSocket, str] = {}
        self.connection_games: Dict[WebSocket, str] = {}

    def connect(self, websocket: WebSocket, game_id: str, player_id: str):
        """Attach an accepted connection to a game."""
        self.disconnect(websocket)
        self.game_connections[game_id].add(websocket)
        self.connection_players[websocket] = player_id
        self.connection_games[websocket] = game_id
        logger.info(f"Player {player_id} connected to game {game_id}")

    def disconnect(self, websocket: WebSocket) -> Tuple[Optional[str], Optional[str]]:
        player_id = self.connection_players.pop(websocket, None)
        game_id = self.connection_games.pop(websocket, None)

        if game_id:
            self.game_connections[game_id].discard(websocket)
            if not self.game_connections[game_id]:
                del self.game_connections[game_id]
            logger.info(f"Player {player_id} disconnected from game {game_id}")

        return player_id, game_id

    def identity(self, websocket: WebSocket) -> Tuple[Optional[str], Optional[str]]:
        return self.connection_players.get(websocket), self.connection_games.get(websocket)

    async def send_event(self, websocket: WebSocket, event: BaseModel):
        await websocket.send_text(event.model_dump_json())

    async def broadcast_state(self, game_id: str, state: GameState):
        """Send each connection the state sanitized for its own player."""
        for websocket in list(self.game_connections.get(game_id, ())):
            player_id = self.connection_players.get(websocket)
            event = create_state_full_event(sanitize_state(state, player_id))
            try:
                await self.send_event(websocket, event)
            except Exception as e:
                logger.error(f"Error broadcasting to {player_id}: {e}")
                self.disconnect(websocket)

    async def broadcast_event(self, game_id: str, event: BaseModel):
        for websocket in list(self.game_connections.get(game_id, ())):
            try:
                await self.send_event(websocket, event)
            except Exception as e:
                logger.error(f"Error broadcasting to game {game_id}: {e}")
                self.disconnect(websocket)


async def handle_join(service: GameService, manager: ConnectionManager,
                      websocket: WebSocket, event: JoinEvent):
    player_id = event.player_id or str(uuid.uuid4())
    service.get_or_create_table(event.game_id)
    state = service.join_game(event.game_id, player_id, event.name)

    manager.connect(websocket, event.game_id, player_id)
    await manager.send_event(websocket, create_join_success_event(event.game_id, player_id))
    await manager.broadcast_state(event.game_id, state)


async def handle_event(service: GameService, manager: ConnectionManager,
                       websocket: WebSocket, event):
    """Dispatch an inbound event to the service and broadcast the result."""
    if isinstance(event, JoinEvent):
        await handle_join(service, manager, websocket, event)
        return

    player_id, game_id = manager.identity(websocket)
    if not player_id or not game_id:
        await manager.send_event(
            websocket,
            create_error_event(ErrorCode.PLAYER_NOT_FOUND, "Join a game first")
        )
        return

    if isinstance(event, RequestStateEvent):
        state = service.get_state(game_id)
        await manager.send_event(websocket, create_state_full_event(sanitize_state(state, player_id)))
        return

    if isinstance(event, LeaveEvent):
        state = service.leave_game(game_id, player_id)
        manager.disconnect(websocket)
        if state is None:
            await manager.broadcast_event(game_id, create_game_deleted_event(game_id))
        else:
            await manager.broadcast_state(game_id, state)
        return

    if isinstance(event, DrawEvent):
        result = service.draw_card(game_id, player_id, event.from_discard)
        card = (
            {"suit": result.card.suit, "rank": result.card.rank, "id": result.card.id}
            if result.card else None
        )
        hint = result.should_meld.id if result.should_meld else None
        await manager.send_event(websocket, create_draw_result_event(card, hint))
        await manager.broadcast_state(game_id, result.state)
        return

    if isinstance(event, SelectSeatEvent):
        state = service.select_seat(game_id, player_id, event.seat)
    elif isinstance(event, ToggleReadyEvent):
        state = service.toggle_ready(game_id, player_id)
    elif isinstance(event, StartEvent):
        state = service.start_game(game_id)
    elif isinstance(event, SelectExchangeEvent):
        state = service.select_exchange_card(game_id, player_id, event.card_id)
    elif isinstance(event, CompleteExchangeEvent):
        state = service.complete_exchange(game_id)
    elif isinstance(event, DiscardEvent):
        state = service.discard_card(game_id, player_id, event.card_id)
    elif isinstance(event, CreateMeldEvent):
        state = service.create_meld(game_id, player_id, event.card_ids)
    elif isinstance(event, AddToMeldEvent):
        state = service.add_card_to_meld(game_id, player_id, event.card_id, event.meld_id)
    else:
        raise ValueError(f"Unhandled event type: {type(event)}")

    await manager.broadcast_state(game_id, state)


def create_app(service: Optional[GameService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional GameService (a fresh in-memory one by default)
    """
    service = service or GameService()
    manager = ConnectionManager()

    app = FastAPI(title="Conquian Game Engine", version=__version__)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.service = service
    app.state.manager = manager

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "games": len(manager.game_connections),
            "connections": len(manager.connection_players),
        }

    @app.get("/games/{game_id}")
    async def get_game(game_id: str):
        state = service.store.get(game_id)
        if state is None:
            raise HTTPException(status_code=404, detail=f"Game {game_id} not found")
        return get_public_game_info(state)

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await websocket.accept()
        try:
            while True:
                raw_data = await websocket.receive_text()
                try:
                    event = parse_inbound_event(orjson.loads(raw_data))
                    await handle_event(service, manager, websocket, event)
                except GameError as e:
                    logger.info(f"Rejected action: {e}")
                    await manager.send_event(websocket, create_error_event(e.code, e.message))
                except (ValueError, orjson.JSONDecodeError) as e:
                    await manager.send_event(
                        websocket, create_error_event(ErrorCode.INVALID_EVENT, str(e))
                    )
                except WebSocketDisconnect:
                    raise
                except Exception:
                    logger.exception("Error handling event")
                    await manager.send_event(
                        websocket, create_error_event(ErrorCode.INTERNAL, "Internal server error")
                    )
        except WebSocketDisconnect:
            logger.info("WebSocket disconnected")
        finally:
            manager.disconnect(websocket)

    return app
