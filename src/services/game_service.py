"""Orchestration of communication from API router to business logic and persistence layers (and the reverse direction).

Every mutating call runs as one atomic unit on the ledger store. Events raised during the call are buffered
and only published once the unit has been committed, so a rejected call leaves no trace at all.
"""

import logging
from datetime import datetime, timezone
from typing import Callable

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
from src.core.events import (
    EventChannel,
    GameCreated,
    GameDrawn,
    GameEvent,
    GameJoined,
    GameWon,
    LoggingEventChannel,
    MoveMade,
    TrophyMinted,
)
from src.core.exceptions import GameNotFoundError, TrophyNotFoundError
from src.core.models import GameModel
from src.core.shared_types import Address
from src.db.repository import LedgerStore
from src.game.board import to_text
from src.game.game import Game, MoveOutcome
from src.trophy.metadata import (
    COLLECTION_NAME,
    COLLECTION_SYMBOL,
    describe,
    token_uri,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GameService:
    """Orchestration of layers for tic-tac-toe games, players and trophies."""

    def __init__(
        self,
        store: LedgerStore,
        events: EventChannel | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self.store = store
        self.events = events if events is not None else LoggingEventChannel()
        self.clock = clock

    # -- Write interface ---
    def create_game(self, request: CreateGameRequest) -> GameResponse:
        """A player opens a new game and waits for an opponent."""

        new_game = Game.new_game(creator=request.caller, now=self.clock())

        with self.store.atomic():
            stored_game, game_id = self.store.games.create_game(new_game.to_model())
            self.store.games.add_player_game(request.caller, game_id)

        logger.info(
            "game %d created by %s",
            game_id,
            request.caller,
            extra={"game_id": game_id, "caller": request.caller},
        )
        self._publish([GameCreated(game_id=game_id, player1=request.caller)])
        return self._create_game_response(game_id, stored_game)

    def join_game(self, request: JoinGameRequest) -> GameResponse:
        """Second player requested to join a game."""

        with self.store.atomic():
            # Retrieve persisted GameModel and let the domain decide if joining is allowed
            game = Game.from_model(self._fetch_game(request.game_id))
            game.register_player(request.caller, self.clock())

            with_player_registered = game.to_model()
            self.store.games.update_game(request.game_id, with_player_registered)
            self.store.games.add_player_game(request.caller, request.game_id)

            # both participants get their game counted at join time, never at creation
            for participant in (game.player1, request.caller):
                self.store.players.record_game_played(participant)

        logger.info(
            "game %d joined by %s",
            request.game_id,
            request.caller,
            extra={"game_id": request.game_id, "caller": request.caller},
        )
        self._publish([GameJoined(game_id=request.game_id, player2=request.caller)])
        return self._create_game_response(request.game_id, with_player_registered)

    def make_move(self, request: MoveRequest) -> GameResponse:
        """Make a move attempt. Wins, draws, counters and trophies are all settled in the same unit."""

        pending: list[GameEvent] = []
        with self.store.atomic():
            game = Game.from_model(self._fetch_game(request.game_id))
            outcome = game.make_move(request.caller, request.position, self.clock())
            pending.append(
                MoveMade(
                    game_id=request.game_id,
                    player=request.caller,
                    position=request.position,
                )
            )

            if outcome is MoveOutcome.WIN:
                self.store.players.record_win(request.caller)
                token_id = self.store.trophies.mint(request.caller, request.game_id)
                pending.append(
                    TrophyMinted(
                        token_id=token_id,
                        winner=request.caller,
                        game_id=request.game_id,
                    )
                )
                pending.append(GameWon(game_id=request.game_id, winner=request.caller))
            elif outcome is MoveOutcome.DRAW:
                pending.append(GameDrawn(game_id=request.game_id))

            after_move = game.to_model()
            self.store.games.update_game(request.game_id, after_move)

        logger.debug(
            "game %d: %s played %d\n%s",
            request.game_id,
            request.caller,
            request.position,
            to_text(game.board),
            extra={"game_id": request.game_id, "position": request.position},
        )
        if outcome is MoveOutcome.WIN:
            logger.info(
                "game %d won by %s",
                request.game_id,
                request.caller,
                extra={"game_id": request.game_id, "winner": request.caller},
            )
        elif outcome is MoveOutcome.DRAW:
            logger.info("game %d ended in a draw", request.game_id)

        self._publish(pending)
        return self._create_game_response(request.game_id, after_move)

    # -- Read interface ---
    def get_game(self, request: GetGameRequest) -> GameResponse:
        """
        Retrieve current game state.
        ----
        Used in "polling" loop by frontend to check when it is the player's turn for instance.
        """
        game_model = self._fetch_game(request.game_id)
        return self._create_game_response(request.game_id, game_model)

    def get_board(self, request: GetGameRequest) -> list[int]:
        return list(self._fetch_game(request.game_id).board)

    def list_open_games(self) -> list[int]:
        return self.store.games.list_open_games()

    def list_player_games(self, player: Address) -> list[int]:
        return self.store.games.list_player_games(player)

    def player_stats(self, player: Address) -> PlayerStatsResponse:
        stats = self.store.players.get_stats(player)
        return PlayerStatsResponse(
            player=player,
            wins=stats.wins,
            total_games=stats.total_games,
            trophy_balance=self.store.trophies.balance_of(player),
            trophies=self.store.trophies.tokens_of(player),
        )

    def trophy_owner(self, token_id: int) -> Address:
        owner = self.store.trophies.owner_of(token_id)
        if owner is None:
            raise TrophyNotFoundError(f"Trophy with {token_id=} not found.")
        return owner

    def get_trophy(self, token_id: int) -> TrophyResponse:
        """Only minted trophies can be looked up, even though their metadata could be derived for any id."""
        trophy = self.store.trophies.get_trophy(token_id)
        if trophy is None:
            raise TrophyNotFoundError(f"Trophy with {token_id=} not found.")
        return TrophyResponse(
            token_id=trophy.token_id,
            owner=trophy.owner,
            game_id=trophy.game_id,
            metadata=describe(token_id),
            token_uri=token_uri(token_id),
        )

    def collection(self) -> CollectionResponse:
        return CollectionResponse(
            name=COLLECTION_NAME,
            symbol=COLLECTION_SYMBOL,
            total_supply=self.store.trophies.total_supply(),
            game_count=self.store.games.game_count(),
        )

    # -- Internal helpers --
    def _create_game_response(self, game_id: int, model: GameModel) -> GameResponse:
        """Convert info in GameModel to a GameResponse (for game with given ID.)"""
        line = Game.from_model(model).winning_line
        return GameResponse(
            game_id=game_id,
            player1=model.player1,
            player2=model.player2,
            board=list(model.board),
            current_turn=model.current_turn,
            winner=model.winner,
            state=model.state,
            created_at=model.created_at,
            last_move_at=model.last_move_at,
            winning_line=list(line) if line is not None else None,
        )

    def _fetch_game(self, game_id: int) -> GameModel:
        """Attempt to find the game in the repository and raise error if it fails."""
        game_model = self.store.games.get_game(game_id)
        if game_model is None:
            raise GameNotFoundError(f"Game with {game_id=} not found.")
        return game_model

    def _publish(self, events: list[GameEvent]) -> None:
        for event in events:
            self.events.publish(event)
