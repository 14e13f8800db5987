"""HTTP read/write interface. The caller identity is taken from the `X-Caller` header set by the authenticating gateway."""

import logging
from typing import Annotated, Generator

from fastapi import APIRouter, Depends, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from src.api.models import (
    CollectionResponse,
    CreateGameRequest,
    GameResponse,
    GetGameRequest,
    JoinGameRequest,
    MoveRequest,
    PlayerStatsResponse,
    TrophyResponse,
)
from src.core.exceptions import (
    GameError,
    GameStateError,
    IllegalMoveError,
    InvalidRequestError,
    NotAParticipantError,
    PlayerError,
    RepositoryError,
)
from src.db.database import session_scope
from src.db.sql_repository import SQLLedgerStore
from src.services.game_service import GameService

logger = logging.getLogger(__name__)

router = APIRouter()

# Most specific class first: the first match in the exception's MRO wins
ERROR_STATUS_CODES: dict[type[GameError], int] = {
    RepositoryError: 404,
    NotAParticipantError: 403,
    GameStateError: 409,
    PlayerError: 409,
    IllegalMoveError: 422,
    InvalidRequestError: 422,
}

Caller = Annotated[str, Header(alias="X-Caller")]


class MoveBody(BaseModel):
    position: int


def get_session(request: Request) -> Generator[Session, None, None]:
    yield from session_scope(request.app.state.session_factory)


def get_service(
    request: Request, db: Annotated[Session, Depends(get_session)]
) -> GameService:
    return GameService(SQLLedgerStore(db), events=request.app.state.events)


Service = Annotated[GameService, Depends(get_service)]


def status_code_for(error: GameError) -> int:
    for cls in type(error).__mro__:
        if cls in ERROR_STATUS_CODES:
            return ERROR_STATUS_CODES[cls]
    return 400


async def game_error_handler(request: Request, exc: GameError) -> JSONResponse:
    """Translate domain errors into HTTP responses. The error class name doubles as a machine readable code."""
    status_code = status_code_for(exc)
    logger.info(
        "rejected %s %s: %s (%s)",
        request.method,
        request.url.path,
        type(exc).__name__,
        exc,
    )
    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


# --- WRITE ---
@router.post("/games", response_model=GameResponse, status_code=201)
def create_game(caller: Caller, service: Service) -> GameResponse:
    return service.create_game(CreateGameRequest(caller=caller))


@router.post("/games/{game_id}/join", response_model=GameResponse)
def join_game(game_id: int, caller: Caller, service: Service) -> GameResponse:
    return service.join_game(JoinGameRequest(caller=caller, game_id=game_id))


@router.post("/games/{game_id}/moves", response_model=GameResponse)
def make_move(
    game_id: int, body: MoveBody, caller: Caller, service: Service
) -> GameResponse:
    return service.make_move(
        MoveRequest(caller=caller, game_id=game_id, position=body.position)
    )


# --- READ ---
@router.get("/games/open", response_model=list[int])
def list_open_games(service: Service) -> list[int]:
    return service.list_open_games()


@router.get("/games/{game_id}", response_model=GameResponse)
def get_game(game_id: int, service: Service) -> GameResponse:
    return service.get_game(GetGameRequest(game_id=game_id))


@router.get("/games/{game_id}/board", response_model=list[int])
def get_board(game_id: int, service: Service) -> list[int]:
    return service.get_board(GetGameRequest(game_id=game_id))


@router.get("/players/{player}/games", response_model=list[int])
def list_player_games(player: str, service: Service) -> list[int]:
    return service.list_player_games(player)


@router.get("/players/{player}/stats", response_model=PlayerStatsResponse)
def player_stats(player: str, service: Service) -> PlayerStatsResponse:
    return service.player_stats(player)


@router.get("/trophies/{token_id}", response_model=TrophyResponse)
def get_trophy(token_id: int, service: Service) -> TrophyResponse:
    return service.get_trophy(token_id)


@router.get("/trophies/{token_id}/owner", response_model=str)
def trophy_owner(token_id: int, service: Service) -> str:
    return service.trophy_owner(token_id)


@router.get("/collection", response_model=CollectionResponse)
def collection(service: Service) -> CollectionResponse:
    return service.collection()
