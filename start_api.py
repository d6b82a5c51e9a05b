#!/usr/bin/env python3
"""
Wait for the database, run migrations, seed staff accounts and rooms, then exec uvicorn.
"""
import os
import sys

# 1) Wait for DB
import wait_for_db  # noqa: F401

# 2) Run migrations using the same settings as the app
from hotel_api.core.config import settings
from hotel_api.core.logging import configure_logging
from alembic.config import Config
from alembic import command

alembic_cfg = Config(os.path.join(os.path.dirname(os.path.abspath(__file__)), "alembic.ini"))
alembic_cfg.set_main_option("sqlalchemy.url", settings.DATABASE_URL)
command.upgrade(alembic_cfg, "head")

# 3) Seed (alembic's fileConfig replaced logging; restore ours first)
configure_logging(settings.LOG_LEVEL)
from hotel_api.seed import run as run_seed
run_seed()

# 4) Start uvicorn (replace current process)
os.execv(
    sys.executable,
    [sys.executable, "-m", "uvicorn", "hotel_api.main:app", "--host", "0.0.0.0", "--port", os.getenv("PORT", "8000")],
)
