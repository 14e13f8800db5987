"""Application entrypoint: wire settings, logging, database and routes together."""

from fastapi import FastAPI
from sqlalchemy import Engine

from src.api.routes import game_error_handler, router
from src.core.config import Settings, get_settings
from src.core.events import EventChannel, LoggingEventChannel
from src.core.exceptions import GameError
from src.core.observability import setup_logging
from src.db.database import build_engine, build_session_factory, init_db


def create_app(
    settings: Settings | None = None,
    engine: Engine | None = None,
    events: EventChannel | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    engine = engine or build_engine(settings)
    init_db(engine)

    app = FastAPI(title="tic-tac-toe ledger")
    app.state.session_factory = build_session_factory(engine)
    app.state.events = events if events is not None else LoggingEventChannel()
    app.include_router(router)
    app.add_exception_handler(GameError, game_error_handler)
    return app


def main() -> FastAPI:
    """Factory for an ASGI server: configures logging from the settings before building the app."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    return create_app(settings)
