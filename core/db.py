import psycopg2
from psycopg2 import pool
from psycopg2.extras import RealDictCursor, execute_values
from typing import Any, Dict, Iterable, List, Optional, Tuple
import threading

import config
from core.app_logging import get_logger, log_event
from core.reference_cache import Corpus, ReferenceDataCache, ReferenceSource
from core.reference_records import (
    AllergenDefinition,
    GRASIngredientRecord,
    NDINotificationRecord,
    OldDietaryIngredientRecord,
)

logger = get_logger(__name__)

PAGE_SIZE = 1000

_pool = None
_pool_lock = threading.Lock()


def _setup_pool():
    global _pool
    with _pool_lock:
        if _pool is not None:
            return _pool
        if config.CLOUD_SQL_CONNECTION_NAME:
            # Cloud Run with Cloud SQL Connector
            unix_socket = f"/cloudsql/{config.CLOUD_SQL_CONNECTION_NAME}"
            _pool = pool.ThreadedConnectionPool(
                minconn=1,
                maxconn=config.DB_POOL_MAX_CONN,
                host=unix_socket,
                database=config.DB_NAME,
                user=config.DB_USER,
                password=config.DB_PASSWORD,
                cursor_factory=RealDictCursor
            )
        else:
            # Direct IP connection (dev/testing)
            _pool = pool.ThreadedConnectionPool(
                minconn=1,
                maxconn=config.DB_POOL_MAX_CONN,
                host=config.DB_HOST,
                port=config.DB_PORT,
                database=config.DB_NAME,
                user=config.DB_USER,
                password=config.DB_PASSWORD,
                cursor_factory=RealDictCursor
            )
        return _pool


SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS major_allergens (
        id SERIAL PRIMARY KEY,
        allergen_name TEXT NOT NULL UNIQUE,
        allergen_category TEXT NOT NULL,
        common_name TEXT,
        derivatives TEXT[] NOT NULL DEFAULT '{}',
        scientific_names TEXT[] DEFAULT '{}',
        cross_reactive_allergens TEXT[] DEFAULT '{}',
        is_active BOOLEAN NOT NULL DEFAULT true,
        notes TEXT,
        regulation_citation TEXT DEFAULT 'FALCPA Section 403(w), FASTER Act',
        created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
        updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS gras_ingredients (
        id SERIAL PRIMARY KEY,
        ingredient_name TEXT NOT NULL,
        cas_number TEXT,
        gras_notice_number TEXT,
        gras_status TEXT NOT NULL CHECK (gras_status IN ('affirmed', 'notice', 'scogs', 'pending')),
        source_reference TEXT,
        category TEXT,
        synonyms TEXT[],
        common_name TEXT,
        is_active BOOLEAN DEFAULT true,
        created_at TIMESTAMP WITH TIME ZONE DEFAULT NOW(),
        updated_at TIMESTAMP WITH TIME ZONE DEFAULT NOW()
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS ndi_ingredients (
        id SERIAL PRIMARY KEY,
        notification_number INTEGER UNIQUE NOT NULL,
        report_number TEXT,
        ingredient_name TEXT NOT NULL,
        firm TEXT,
        submission_date DATE,
        fda_response_date DATE,
        created_at TIMESTAMPTZ DEFAULT NOW(),
        updated_at TIMESTAMPTZ DEFAULT NOW()
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS old_dietary_ingredients (
        id SERIAL PRIMARY KEY,
        ingredient_name TEXT NOT NULL UNIQUE,
        synonyms TEXT[],
        source TEXT,
        notes TEXT,
        is_active BOOLEAN DEFAULT TRUE,
        created_at TIMESTAMPTZ DEFAULT NOW(),
        updated_at TIMESTAMPTZ DEFAULT NOW()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_allergens_active ON major_allergens(is_active);",
    "CREATE INDEX IF NOT EXISTS idx_gras_ingredient_name ON gras_ingredients(ingredient_name);",
    "CREATE INDEX IF NOT EXISTS idx_ndi_ingredients_name ON ndi_ingredients(ingredient_name);",
    "CREATE INDEX IF NOT EXISTS idx_odi_ingredient_name ON old_dietary_ingredients(ingredient_name);",
]


class ReferenceDatabase:
    """Read access to the regulatory reference tables in PostgreSQL."""

    def __init__(self, connection_pool=None):
        self._pool = connection_pool

    def _get_connection(self):
        """Get a PostgreSQL connection from the pool."""
        if self._pool is None:
            self._pool = _setup_pool()
        return self._pool.getconn()

    def _release_connection(self, conn):
        """Return a connection to the pool."""
        if self._pool and conn:
            self._pool.putconn(conn)

    def init_schema(self):
        """Create the reference tables if they don't exist."""
        conn = self._get_connection()
        try:
            cur = conn.cursor()
            for statement in SCHEMA_STATEMENTS:
                cur.execute(statement)
            conn.commit()
        finally:
            self._release_connection(conn)

    def _fetch_all(self, query: str) -> List[Dict[str, Any]]:
        """Run ``query`` page by page (LIMIT/OFFSET) and return every row."""
        rows: List[Dict[str, Any]] = []
        conn = self._get_connection()
        try:
            cur = conn.cursor()
            offset = 0
            while True:
                cur.execute(f"{query} LIMIT %s OFFSET %s", (PAGE_SIZE, offset))
                page = cur.fetchall()
                rows.extend(dict(r) for r in page)
                if len(page) < PAGE_SIZE:
                    break
                offset += PAGE_SIZE
            conn.commit()
        except psycopg2.Error:
            conn.rollback()
            raise
        finally:
            self._release_connection(conn)
        return rows

    def fetch_allergens(self) -> List[AllergenDefinition]:
        rows = self._fetch_all(
            "SELECT * FROM major_allergens WHERE is_active = true ORDER BY allergen_name, id"
        )
        return [AllergenDefinition.from_db_row(r) for r in rows]

    def fetch_gras_ingredients(self) -> List[GRASIngredientRecord]:
        rows = self._fetch_all(
            "SELECT * FROM gras_ingredients WHERE is_active = true ORDER BY ingredient_name, id"
        )
        return [GRASIngredientRecord.from_db_row(r) for r in rows]

    def fetch_ndi_notifications(self) -> List[NDINotificationRecord]:
        rows = self._fetch_all(
            "SELECT * FROM ndi_ingredients ORDER BY ingredient_name, notification_number"
        )
        return [NDINotificationRecord.from_db_row(r) for r in rows]

    def fetch_old_dietary_ingredients(self) -> List[OldDietaryIngredientRecord]:
        rows = self._fetch_all(
            "SELECT * FROM old_dietary_ingredients WHERE is_active = true ORDER BY ingredient_name, id"
        )
        return [OldDietaryIngredientRecord.from_db_row(r) for r in rows]

    def as_source(self) -> ReferenceSource:
        """Corpus -> fetch callable mapping for ``ReferenceDataCache``."""
        return {
            Corpus.ALLERGENS: self.fetch_allergens,
            Corpus.GRAS: self.fetch_gras_ingredients,
            Corpus.NDI: self.fetch_ndi_notifications,
            Corpus.ODI: self.fetch_old_dietary_ingredients,
        }

    # --- Seeding -----------------------------------------------------------

    def _upsert(self, sql: str, values: Iterable[Tuple[Any, ...]]) -> int:
        values = list(values)
        if not values:
            return 0
        conn = self._get_connection()
        try:
            cur = conn.cursor()
            execute_values(cur, sql, values)
            conn.commit()
        except psycopg2.Error:
            conn.rollback()
            raise
        finally:
            self._release_connection(conn)
        return len(values)

    def upsert_allergens(self, rows: List[Dict[str, Any]]) -> int:
        return self._upsert(
            """
            INSERT INTO major_allergens
                (allergen_name, allergen_category, common_name, derivatives,
                 scientific_names, cross_reactive_allergens, notes)
            VALUES %s
            ON CONFLICT (allergen_name) DO UPDATE SET
                allergen_category = EXCLUDED.allergen_category,
                common_name = EXCLUDED.common_name,
                derivatives = EXCLUDED.derivatives,
                scientific_names = EXCLUDED.scientific_names,
                cross_reactive_allergens = EXCLUDED.cross_reactive_allergens,
                notes = EXCLUDED.notes,
                updated_at = NOW()
            """,
            (
                (
                    r["allergen_name"],
                    r["allergen_category"],
                    r.get("common_name"),
                    r.get("derivatives", []),
                    r.get("scientific_names", []),
                    r.get("cross_reactive_allergens", []),
                    r.get("notes"),
                )
                for r in rows
            ),
        )

    def upsert_old_dietary_ingredients(self, rows: List[Dict[str, Any]]) -> int:
        return self._upsert(
            """
            INSERT INTO old_dietary_ingredients (ingredient_name, synonyms, source, notes)
            VALUES %s
            ON CONFLICT (ingredient_name) DO UPDATE SET
                synonyms = EXCLUDED.synonyms,
                source = EXCLUDED.source,
                notes = EXCLUDED.notes,
                updated_at = NOW()
            """,
            (
                (r["ingredient_name"], r.get("synonyms", []), r.get("source"), r.get("notes"))
                for r in rows
            ),
        )


def build_reference_cache(database: Optional[ReferenceDatabase] = None) -> ReferenceDataCache:
    """Production cache wired to PostgreSQL and configured from the environment."""
    database = database or ReferenceDatabase()
    log_event(
        logger,
        "Building reference cache",
        ttl_seconds=config.REFERENCE_CACHE_TTL_SECONDS,
        fetch_timeout=config.REFERENCE_FETCH_TIMEOUT_SECONDS,
    )
    return ReferenceDataCache(
        database.as_source(),
        ttl_seconds=config.REFERENCE_CACHE_TTL_SECONDS,
        fetch_timeout=config.REFERENCE_FETCH_TIMEOUT_SECONDS,
    )
