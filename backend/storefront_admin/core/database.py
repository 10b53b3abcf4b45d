"""
Conexión a base de datos PostgreSQL

Este módulo centraliza el acceso a la base de datos:
- psycopg2 directo con RealDictCursor (cada fila es el documento)
- Reintentos con backoff exponencial ante fallos de conexión
- Creación de tablas y usuario admin en el primer arranque

Repositories receive a connection factory instead of reaching for a global
handle, so tests can swap in fakes.
"""
import time
import uuid
import logging
from datetime import datetime, timezone
from typing import Callable

import psycopg2
from psycopg2.extras import RealDictCursor

from .config import settings

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[], "psycopg2.extensions.connection"]

# Seconds before a connection attempt gives up
CONNECTION_TIMEOUT = 10


def new_id() -> str:
    """Opaque local identifier for users, products and orders"""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _connect_kwargs() -> dict:
    kwargs = {"cursor_factory": RealDictCursor, "connect_timeout": CONNECTION_TIMEOUT}
    if settings.DATABASE_NAME:
        kwargs["dbname"] = settings.DATABASE_NAME
    return kwargs


# ============================================================================
# psycopg2 Connections with Retry Logic
# ============================================================================

def get_db_connection_dict_with_retry(max_retries=3, retry_delay=1.0):
    """
    Get a psycopg2 connection with RealDictCursor and automatic retry

    Retries failed connections up to max_retries times with exponential
    backoff between attempts.

    Args:
        max_retries: Maximum number of connection attempts (default: 3)
        retry_delay: Initial delay between retries in seconds (default: 1.0)

    Returns:
        psycopg2 connection with RealDictCursor

    Raises:
        psycopg2.OperationalError: If all retry attempts fail
    """
    database_url = settings.DATABASE_URL
    if not database_url:
        raise RuntimeError("DATABASE_URL not configured")

    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            logger.debug(f"Database connection attempt {attempt}/{max_retries}")
            conn = psycopg2.connect(database_url, **_connect_kwargs())

            # Test connection with a simple query
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
            cursor.close()

            logger.debug(f"Database connection successful on attempt {attempt}")
            return conn

        except psycopg2.OperationalError as e:
            last_error = e
            logger.warning(f"Connection error on attempt {attempt}/{max_retries}: {e}")

            if attempt < max_retries:
                delay = retry_delay * (2 ** (attempt - 1))
                logger.info(f"Retrying in {delay:.2f} seconds...")
                time.sleep(delay)
            else:
                logger.error(f"All {max_retries} connection attempts failed")
                raise

    raise last_error if last_error else RuntimeError("Connection failed after all retries")


# ============================================================================
# Schema bootstrap
# ============================================================================

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS users (
    id            TEXT PRIMARY KEY,
    name          TEXT NOT NULL DEFAULT '',
    email         TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    role          TEXT NOT NULL DEFAULT 'admin',
    created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS products (
    id          TEXT PRIMARY KEY,
    external_id TEXT UNIQUE,
    name        TEXT NOT NULL CHECK (name <> ''),
    description TEXT NOT NULL DEFAULT '',
    price       NUMERIC(12, 2) NOT NULL CHECK (price >= 0),
    category    TEXT NOT NULL CHECK (category <> ''),
    stock       INTEGER NOT NULL DEFAULT 0 CHECK (stock >= 0),
    image_urls  JSONB NOT NULL DEFAULT '[]'::jsonb,
    created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at  TIMESTAMPTZ
);

CREATE TABLE IF NOT EXISTS orders (
    id                 TEXT PRIMARY KEY,
    external_id        TEXT NOT NULL UNIQUE,
    order_number       TEXT NOT NULL,
    customer           JSONB,
    total_price        NUMERIC(12, 2) NOT NULL DEFAULT 0,
    currency           TEXT NOT NULL,
    payment_status     TEXT NOT NULL DEFAULT 'pending',
    fulfillment_status TEXT NOT NULL DEFAULT 'unfulfilled',
    line_items         JSONB NOT NULL DEFAULT '[]'::jsonb,
    created_at         TIMESTAMPTZ NOT NULL,
    updated_at         TIMESTAMPTZ
);
"""


def init_database(connection_factory: ConnectionFactory = get_db_connection_dict_with_retry):
    """
    Create tables if missing and seed the admin user on first boot

    Safe to call on every startup.
    """
    from .auth import hash_password

    conn = connection_factory()
    cursor = conn.cursor()

    try:
        cursor.execute(SCHEMA_SQL)

        cursor.execute("SELECT id FROM users WHERE email = %s", (settings.ADMIN_EMAIL,))
        if not cursor.fetchone():
            cursor.execute("""
                INSERT INTO users (id, name, email, password_hash, role, created_at)
                VALUES (%s, %s, %s, %s, 'admin', %s)
            """, (
                new_id(),
                settings.ADMIN_NAME,
                settings.ADMIN_EMAIL,
                hash_password(settings.ADMIN_PASSWORD),
                utcnow(),
            ))
            logger.info(f"Admin user created: {settings.ADMIN_EMAIL}")

        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        cursor.close()
        conn.close()
