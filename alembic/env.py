import os
from logging.config import fileConfig

from alembic import context
from sqlalchemy import pool, create_engine

from hotel_api.core.config import settings
from hotel_api.db.session import Base

# Import all models so Alembic sees them in metadata
from hotel_api.models.user import User, Guest, Employee  # noqa: F401
from hotel_api.models.room import Room  # noqa: F401
from hotel_api.models.booking import Booking  # noqa: F401
from hotel_api.models.payment import Payment, CardPayment, EWalletPayment  # noqa: F401
from hotel_api.models.audit_log import AuditLog  # noqa: F401


# Alembic Config object
config = context.config

# Prefer a URL set programmatically (start_api.py), then the app settings.
db_url = config.get_main_option("sqlalchemy.url") or getattr(settings, "DATABASE_URL", None) or os.getenv("DATABASE_URL")
if not db_url:
    raise RuntimeError("DATABASE_URL is not set (check .env / hotel_api.core.config.settings)")

config.set_main_option("sqlalchemy.url", db_url)

# Logging config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# Target metadata for autogenerate
target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Run migrations in 'offline' mode."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations in 'online' mode."""
    url = config.get_main_option("sqlalchemy.url")

    # alembic.ini leaves sqlalchemy.url blank; build the engine from the resolved URL.
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            render_as_batch=connection.dialect.name == "sqlite",
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
