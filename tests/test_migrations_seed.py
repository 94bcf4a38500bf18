import os
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, func, inspect, select
from sqlalchemy.orm import sessionmaker

from app.hub.core.config import Settings
from app.hub.db.models import IdentityAccount, Store, UserProfile
from app.hub.db.seed import run_seed


def _run_migrations(database_url: str):
    os.environ["DATABASE_URL"] = database_url
    config = Config("alembic.ini")
    config.set_main_option("sqlalchemy.url", database_url)
    command.upgrade(config, "head")


def test_migrations_apply(tmp_path: Path):
    database_url = f"sqlite+pysqlite:///{tmp_path / 'migrations.db'}"
    _run_migrations(database_url)

    inspector = inspect(create_engine(database_url, future=True))
    tables = set(inspector.get_table_names())
    assert {"stores", "user_profiles", "user_store_access", "identity_accounts", "identity_outbox"} <= tables
    indexes = [index["name"] for index in inspector.get_indexes("user_store_access")]
    assert "ix_user_store_access_store_id" in indexes


def test_seed_is_idempotent(tmp_path: Path):
    database_url = f"sqlite+pysqlite:///{tmp_path / 'seed.db'}"
    _run_migrations(database_url)
    SessionLocal = sessionmaker(bind=create_engine(database_url, future=True), future=True)
    settings = Settings(IDENTITY_BACKEND="local", BOOTSTRAP_ADMIN_EMAIL="Boss@Example.com")

    with SessionLocal() as db:
        run_seed(db, settings=settings)
        run_seed(db, settings=settings)

        assert db.execute(select(func.count()).select_from(Store)).scalar_one() == 1
        assert db.execute(select(func.count()).select_from(IdentityAccount)).scalar_one() == 1
        profile = db.execute(select(UserProfile)).scalar_one()
        assert profile.email == "boss@example.com"
        assert profile.role == "Admin"


def test_seed_skips_admin_for_hosted_identity(tmp_path: Path):
    database_url = f"sqlite+pysqlite:///{tmp_path / 'hosted.db'}"
    _run_migrations(database_url)
    SessionLocal = sessionmaker(bind=create_engine(database_url, future=True), future=True)

    with SessionLocal() as db:
        run_seed(db, settings=Settings(IDENTITY_BACKEND="supabase"))
        assert db.execute(select(func.count()).select_from(UserProfile)).scalar_one() == 0
        assert db.execute(select(func.count()).select_from(Store)).scalar_one() == 1
