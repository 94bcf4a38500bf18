import importlib
import os
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from alembic import command
from alembic.config import Config


def _setup_app(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    os.environ["SECRET_KEY"] = "test-secret"
    os.environ["IDENTITY_BACKEND"] = "local"
    os.environ["DEFAULT_REDIRECT_URL"] = ""

    import app.hub.core.config as config
    import app.hub.db.session as session
    import app.main as main

    importlib.reload(config)
    importlib.reload(session)
    importlib.reload(main)

    return main.create_app(settings=config.settings), session, config.settings


def _run_migrations(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


@pytest.fixture()
def client(tmp_path: Path):
    db_path = tmp_path / "test.db"
    database_url = f"sqlite+pysqlite:///{db_path}"

    _run_migrations(database_url)
    app, session, settings = _setup_app(database_url)

    from app.hub.db.seed import run_seed

    with session.SessionLocal() as db:
        run_seed(db, settings=settings)

    with TestClient(app) as client:
        yield client

    session.engine.dispose()


@pytest.fixture()
def db_session(client):
    from app.hub.db.session import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
