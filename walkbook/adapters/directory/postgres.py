"""
PostgreSQL user directory adapter - Implements UserDirectory protocol.

Reads the users and pets tables. Password hashes are stored as text and
compared with bcrypt; see passwords.py for the timing oracle handling.
"""

import logging

from psycopg_pool import ConnectionPool

from walkbook.domain.records import Actor, Role

from .passwords import check_password, hash_password, normalize_email

logger = logging.getLogger(__name__)


class PostgresUserDirectory:
    """
    Implements UserDirectory protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool, bcrypt_cost: int = 10) -> None:
        self._pool = pool
        self._bcrypt_cost = bcrypt_cost

    def authenticate(self, email: str, password: str) -> Actor | None:
        sql = "SELECT id, password_hash, role, is_active FROM users WHERE email = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (normalize_email(email),))
            row = cursor.fetchone()

        # CRITICAL: bcrypt runs whether or not the user exists
        stored_hash = row[1].encode() if row is not None else None
        password_valid = check_password(password, stored_hash)

        if row is None or not password_valid or not row[3]:
            return None
        return Actor(id=row[0], role=Role(row[2]))

    def is_active_walker(self, walker_id: str) -> bool:
        sql = "SELECT 1 FROM users WHERE id = %s AND role = %s AND is_active"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (walker_id, Role.WALKER.value))
            return cursor.fetchone() is not None

    def owns_pet(self, owner_id: str, pet_id: str) -> bool:
        sql = "SELECT 1 FROM pets WHERE id = %s AND owner_id = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (pet_id, owner_id))
            return cursor.fetchone() is not None

    def add_user(self, email: str, password: str, name: str, role: Role) -> str:
        sql = """
            INSERT INTO users (email, password_hash, name, role)
            VALUES (%s, %s, %s, %s)
            RETURNING id
        """
        password_hash = hash_password(password, self._bcrypt_cost).decode()
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (normalize_email(email), password_hash, name, role.value))
            user_id = cursor.fetchone()[0]
            conn.commit()
        logger.info("Created %s user %s", role.value, user_id)
        return user_id

    def add_pet(self, owner_id: str, name: str, breed: str | None = None) -> str:
        sql = "INSERT INTO pets (owner_id, name, breed) VALUES (%s, %s, %s) RETURNING id"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (owner_id, name, breed))
            pet_id = cursor.fetchone()[0]
            conn.commit()
        return pet_id

    def deactivate_user(self, user_id: str) -> None:
        with self._pool.connection() as conn:
            conn.execute("UPDATE users SET is_active = FALSE WHERE id = %s", (user_id,))
            conn.commit()
