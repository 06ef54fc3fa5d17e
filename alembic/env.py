from logging.config import fileConfig

from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import Connection, URL, make_url

from alembic import context

from guardpost.core.database import Base
import guardpost.models  # noqa: F401

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# Migrations run on a sync engine; the app's async drivers map to their sync twins.
SYNC_DRIVERS = {
    "postgresql+asyncpg": "postgresql+psycopg2",
    "sqlite+aiosqlite": "sqlite",
}


def get_url() -> URL:
    """`alembic -x dburl=...` wins over DATABASE_URL from the settings."""
    from guardpost.core.config import settings
    raw = context.get_x_argument(as_dictionary=True).get("dburl") or settings.DATABASE_URL
    url = make_url(raw)
    return url.set(drivername=SYNC_DRIVERS.get(url.drivername, url.drivername))


def _configure(**kwargs) -> None:
    url = get_url()
    context.configure(
        target_metadata=target_metadata,
        compare_type=True,
        # 0002 adds/drops violations.voided, which SQLite only supports via batch mode
        render_as_batch=url.get_backend_name() == "sqlite",
        **kwargs,
    )


def run_migrations_offline() -> None:
    _configure(
        url=get_url(),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def do_run_migrations(connection: Connection) -> None:
    _configure(connection=connection)
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    configuration = config.get_section(config.config_ini_section, {})
    configuration["sqlalchemy.url"] = get_url().render_as_string(hide_password=False)
    connectable = engine_from_config(
        configuration,
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        do_run_migrations(connection)
    connectable.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
