"""
Database connection and query module.

Provides a clean interface for database operations with support
for both PostgreSQL and SQLite backends.
"""

import logging
import os
import re
from typing import Any, Dict, List, Optional

import asyncpg
import aiosqlite

from config import config

logger = logging.getLogger(__name__)

PARAM_PATTERN = re.compile(r'\$\d+')


class Database:
    """
    Async database connection manager.

    Supports PostgreSQL (production) and SQLite (development and tests).
    Queries are written with PostgreSQL ``$1`` placeholders and rewritten
    for SQLite.
    """

    def __init__(self, database_url: Optional[str] = None):
        """
        Initialize database manager.

        Args:
            database_url: Database connection URL. Uses config if not provided.
        """
        self.database_url = database_url or config.database.url
        self._pool = None
        self._sqlite_conn = None
        self._is_postgres = self.database_url.startswith('postgres')

    async def connect(self) -> None:
        """Establish database connection(s)."""
        if self._is_postgres:
            logger.info("Connecting to PostgreSQL database...")
            self._pool = await asyncpg.create_pool(
                self.database_url,
                min_size=2,
                max_size=10,
                command_timeout=60
            )
        else:
            db_path = self.database_url.replace('sqlite:///', '')
            logger.info(f"Connecting to SQLite database: {db_path}")
            self._sqlite_conn = await aiosqlite.connect(db_path)
            self._sqlite_conn.row_factory = aiosqlite.Row

        logger.info("Database connection established")

    async def disconnect(self) -> None:
        """Close database connection(s)."""
        if self._is_postgres and self._pool:
            await self._pool.close()
            self._pool = None
        elif self._sqlite_conn:
            await self._sqlite_conn.close()
            self._sqlite_conn = None

        logger.info("Database connection closed")

    async def insert(self, query: str, *args) -> int:
        """
        Execute an INSERT and return the new row id.

        The query must not carry its own RETURNING clause; one is added
        for PostgreSQL.

        Args:
            query: INSERT statement
            *args: Query parameters

        Returns:
            Primary key of the inserted row
        """
        if self._is_postgres:
            async with self._pool.acquire() as conn:
                return await conn.fetchval(f"{query.rstrip()} RETURNING id", *args)
        else:
            cursor = await self._sqlite_conn.execute(self._convert_params(query), args)
            await self._sqlite_conn.commit()
            return cursor.lastrowid

    async def fetch_one(self, query: str, *args) -> Optional[Dict[str, Any]]:
        """
        Execute a query and fetch one row.

        Args:
            query: SQL query to execute
            *args: Query parameters

        Returns:
            Row as dictionary or None if no results
        """
        if self._is_postgres:
            async with self._pool.acquire() as conn:
                row = await conn.fetchrow(query, *args)
                return dict(row) if row else None
        else:
            cursor = await self._sqlite_conn.execute(self._convert_params(query), args)
            row = await cursor.fetchone()
            if row:
                columns = [d[0] for d in cursor.description]
                return dict(zip(columns, row))
            return None

    async def fetch_all(self, query: str, *args) -> List[Dict[str, Any]]:
        """
        Execute a query and fetch all rows.

        Args:
            query: SQL query to execute
            *args: Query parameters

        Returns:
            List of rows as dictionaries
        """
        if self._is_postgres:
            async with self._pool.acquire() as conn:
                rows = await conn.fetch(query, *args)
                return [dict(row) for row in rows]
        else:
            cursor = await self._sqlite_conn.execute(self._convert_params(query), args)
            rows = await cursor.fetchall()
            if rows:
                columns = [d[0] for d in cursor.description]
                return [dict(zip(columns, row)) for row in rows]
            return []

    def _convert_params(self, query: str) -> str:
        """Convert PostgreSQL $1, $2 style params to SQLite ? style."""
        return PARAM_PATTERN.sub('?', query)

    async def init_schema(self) -> None:
        """Initialize database schema from schema.sql file."""
        schema_path = os.path.join(os.path.dirname(__file__), 'schema.sql')

        with open(schema_path, 'r') as f:
            lines = [line for line in f if not line.lstrip().startswith('--')]

        statements = [s.strip() for s in ''.join(lines).split(';') if s.strip()]

        for statement in statements:
            if not self._is_postgres:
                statement = statement.replace('SERIAL PRIMARY KEY', 'INTEGER PRIMARY KEY')

            if self._is_postgres:
                async with self._pool.acquire() as conn:
                    await conn.execute(statement)
            else:
                await self._sqlite_conn.execute(statement)

        if not self._is_postgres:
            await self._sqlite_conn.commit()

        logger.info("Database schema initialized")

