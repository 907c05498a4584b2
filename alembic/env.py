"""Migrations for the users/profiles/photos schema; the target database is settings.DATABASE_URL."""

from logging.config import fileConfig
from typing import Any

from alembic import context
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.models import Base

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL.replace("%", "%%"))

# Logging sections are optional in alembic.ini.
if config.config_file_name is not None:
    try:
        fileConfig(config.config_file_name)
    except KeyError:
        pass


def _configure(**kwargs: Any) -> None:
    """Configure the context for this schema and run every pending revision."""
    backend = make_url(settings.DATABASE_URL).get_backend_name()
    context.configure(
        target_metadata=Base.metadata,
        compare_type=True,
        # SQLite cannot ALTER constraints in place; batch mode rebuilds the table.
        render_as_batch=backend == "sqlite",
        **kwargs,
    )
    with context.begin_transaction():
        context.run_migrations()


if context.is_offline_mode():
    _configure(
        url=settings.DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
else:
    with create_engine(settings.DATABASE_URL, poolclass=NullPool).connect() as connection:
        _configure(connection=connection)
