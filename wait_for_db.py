"""Block until the Postgres named by DATABASE_URL accepts connections.

Imported for its side effect by start_api.py; also runnable on its own.
"""
import os, time
from urllib.parse import urlparse

import psycopg2

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise SystemExit("DATABASE_URL is not set")

if DATABASE_URL.startswith("sqlite"):
    print("[wait_for_db] SQLite database, nothing to wait for.")
else:
    url = DATABASE_URL.replace("postgresql+psycopg2://", "postgresql://").replace("postgres://", "postgresql://")
    p = urlparse(url)
    conninfo = dict(
        host=p.hostname or "db",
        port=p.port or 5432,
        user=p.username or "hotel",
        password=p.password or "hotel",
        dbname=(p.path or "/hotel").lstrip("/") or "hotel",
    )
    timeout_s = int(os.getenv("DB_WAIT_TIMEOUT", "60"))
    deadline = time.time() + timeout_s

    print(f"[wait_for_db] Waiting for Postgres at {conninfo['host']}:{conninfo['port']} db={conninfo['dbname']} (timeout={timeout_s}s)")
    while True:
        try:
            psycopg2.connect(**conninfo).close()
            print("[wait_for_db] Postgres is ready.")
            break
        except psycopg2.OperationalError as e:
            if time.time() > deadline:
                print(f"[wait_for_db] Timed out waiting for DB. Last error: {e}")
                raise
            time.sleep(1)
