"""
PostgreSQL repository adapters - Implement the walk request and review ports.

This module provides the PostgreSQL implementations of the domain's
repository ports using psycopg3 with raw SQL.

Concurrency Design - Single-Statement Writes:
---------------------------------------------
No method reads a row and then writes based on what it read. Every write
carries its own precondition so the database evaluates it atomically:

1. **Status transitions**: ``UPDATE ... WHERE id = %s AND status = %s
   RETURNING``. Of two concurrent accepts on one PENDING request, the row
   lock taken by the first UPDATE makes the second re-evaluate its WHERE
   clause against the committed ACCEPTED row; it matches nothing and
   returns no row.

2. **Review uniqueness**: ``INSERT ... ON CONFLICT (walk_request_id) DO
   NOTHING RETURNING``. The UNIQUE constraint decides; a losing insert
   returns no row instead of raising.

3. **completed_at**: set in the same UPDATE that moves a request to
   COMPLETED, and a CHECK constraint ties it to that status.
"""

import logging
from pathlib import Path
from typing import Any

from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from walkbook.domain.records import (
    NewReview,
    NewWalkRequest,
    PartySummary,
    PetSummary,
    Review,
    ReviewView,
    WalkRequest,
    WalkStatus,
    WalkSummary,
)

logger = logging.getLogger(__name__)

_REQUEST_COLUMNS = (
    "id",
    "owner_id",
    "walker_id",
    "pet_id",
    "status",
    "scheduled_at",
    "duration_min",
    "notes",
    "walker_notes",
    "completed_at",
    "created_at",
    "updated_at",
)

_REVIEW_COLUMNS = (
    "id",
    "walk_request_id",
    "owner_id",
    "walker_id",
    "rating",
    "comment",
    "created_at",
)


def _columns(columns: tuple[str, ...], alias: str | None = None) -> str:
    if alias is None:
        return ", ".join(columns)
    return ", ".join(f"{alias}.{name}" for name in columns)


def _walk_request(row: dict[str, Any]) -> WalkRequest:
    return WalkRequest(
        id=row["id"],
        owner_id=row["owner_id"],
        walker_id=row["walker_id"],
        pet_id=row["pet_id"],
        status=WalkStatus(row["status"]),
        scheduled_at=row["scheduled_at"],
        duration_min=row["duration_min"],
        notes=row["notes"],
        walker_notes=row["walker_notes"],
        completed_at=row["completed_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _review(row: dict[str, Any]) -> Review:
    return Review(
        id=row["id"],
        walk_request_id=row["walk_request_id"],
        owner_id=row["owner_id"],
        walker_id=row["walker_id"],
        rating=row["rating"],
        comment=row["comment"],
        created_at=row["created_at"],
    )


def _walk_summary(row: dict[str, Any]) -> WalkSummary:
    return WalkSummary(
        request=_walk_request(row),
        owner=PartySummary(id=row["owner_id"], name=row["owner_name"]),
        walker=PartySummary(id=row["walker_id"], name=row["walker_name"]),
        pet=PetSummary(id=row["pet_id"], name=row["pet_name"], breed=row["pet_breed"]),
    )


def _review_view(row: dict[str, Any]) -> ReviewView:
    return ReviewView(
        review=_review(row),
        owner=PartySummary(id=row["owner_id"], name=row["owner_name"]),
        walker=PartySummary(id=row["walker_id"], name=row["walker_name"]),
        pet=PetSummary(id=row["pet_id"], name=row["pet_name"], breed=row["pet_breed"]),
        scheduled_at=row["scheduled_at"],
        duration_min=row["duration_min"],
    )


# Read-side projection: walk request joined with both parties and the pet
_WALK_SUMMARY_SELECT = f"""
    SELECT {_columns(_REQUEST_COLUMNS, "wr")},
           o.name AS owner_name,
           w.name AS walker_name,
           p.name AS pet_name,
           p.breed AS pet_breed
    FROM walk_requests wr
    JOIN users o ON o.id = wr.owner_id
    JOIN users w ON w.id = wr.walker_id
    JOIN pets p ON p.id = wr.pet_id
"""

# Read-side projection: review joined with both parties and the walked pet
_REVIEW_VIEW_SELECT = f"""
    SELECT {_columns(_REVIEW_COLUMNS, "r")},
           o.name AS owner_name,
           w.name AS walker_name,
           wr.pet_id,
           wr.scheduled_at,
           wr.duration_min,
           p.name AS pet_name,
           p.breed AS pet_breed
    FROM reviews r
    JOIN users o ON o.id = r.owner_id
    JOIN users w ON w.id = r.walker_id
    JOIN walk_requests wr ON wr.id = r.walk_request_id
    JOIN pets p ON p.id = wr.pet_id
"""


def _party_filter(
    alias: str, owner_id: str | None, walker_id: str | None
) -> tuple[list[str], list[Any]]:
    conditions: list[str] = []
    params: list[Any] = []
    if owner_id is not None:
        conditions.append(f"{alias}.owner_id = %s")
        params.append(owner_id)
    if walker_id is not None:
        conditions.append(f"{alias}.walker_id = %s")
        params.append(walker_id)
    return conditions, params


def _where(conditions: list[str]) -> str:
    if not conditions:
        return ""
    return "WHERE " + " AND ".join(conditions)


class PostgresWalkRequestRepository:
    """
    Implements WalkRequestRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def add(self, draft: NewWalkRequest) -> WalkRequest:
        sql = f"""
            INSERT INTO walk_requests (owner_id, walker_id, pet_id, status, scheduled_at, duration_min, notes)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING {_columns(_REQUEST_COLUMNS)}
        """
        params = (
            draft.owner_id,
            draft.walker_id,
            draft.pet_id,
            WalkStatus.PENDING.value,
            draft.scheduled_at,
            draft.duration_min,
            draft.notes,
        )
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
            conn.commit()
        return _walk_request(row)

    def get(self, request_id: str) -> WalkRequest | None:
        sql = f"SELECT {_columns(_REQUEST_COLUMNS)} FROM walk_requests WHERE id = %s"
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (request_id,))
            row = cursor.fetchone()
        return _walk_request(row) if row is not None else None

    def transition(
        self,
        request_id: str,
        expected: WalkStatus,
        target: WalkStatus,
        walker_notes: str | None = None,
    ) -> WalkRequest | None:
        """
        Conditionally move a request from expected to target status.

        The WHERE clause carries the precondition, so the status check and
        the write are one atomic statement.
        """
        sql = f"""
            UPDATE walk_requests
            SET status = %(target)s,
                walker_notes = COALESCE(%(walker_notes)s::text, walker_notes),
                completed_at = CASE WHEN %(completing)s THEN NOW() ELSE completed_at END,
                updated_at = NOW()
            WHERE id = %(id)s AND status = %(expected)s
            RETURNING {_columns(_REQUEST_COLUMNS)}
        """
        params = {
            "id": request_id,
            "expected": expected.value,
            "target": target.value,
            "walker_notes": walker_notes,
            "completing": target is WalkStatus.COMPLETED,
        }
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
            conn.commit()

        if row is None:
            logger.info(
                "Transition %s -> %s matched no row for walk request %s",
                expected.value,
                target.value,
                request_id,
            )
            return None
        return _walk_request(row)

    def list_for_party(
        self,
        *,
        owner_id: str | None = None,
        walker_id: str | None = None,
        status: WalkStatus | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[WalkSummary], int]:
        conditions, params = _party_filter("wr", owner_id, walker_id)
        if status is not None:
            conditions.append("wr.status = %s")
            params.append(status.value)
        where = _where(conditions)

        list_sql = f"""
            {_WALK_SUMMARY_SELECT}
            {where}
            ORDER BY wr.scheduled_at DESC, wr.id
            LIMIT %s OFFSET %s
        """
        count_sql = f"SELECT COUNT(*) AS total FROM walk_requests wr {where}"

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(list_sql, (*params, limit, offset))
            rows = cursor.fetchall()
            cursor.execute(count_sql, params)
            total = cursor.fetchone()["total"]
        return [_walk_summary(row) for row in rows], total

    def list_completed_for_owner(self, owner_id: str) -> list[WalkSummary]:
        sql = f"""
            {_WALK_SUMMARY_SELECT}
            WHERE wr.owner_id = %s AND wr.status = %s
            ORDER BY wr.completed_at DESC, wr.id
        """
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (owner_id, WalkStatus.COMPLETED.value))
            rows = cursor.fetchall()
        return [_walk_summary(row) for row in rows]


class PostgresReviewRepository:
    """
    Implements ReviewRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def add(self, draft: NewReview) -> Review | None:
        """
        Insert a review unless one already exists for the walk request.

        Uses INSERT ... ON CONFLICT (walk_request_id) DO NOTHING so the
        UNIQUE constraint is the only arbiter between concurrent inserts.

        Returns:
            The stored review, or None if the walk request already has one
        """
        sql = f"""
            INSERT INTO reviews (walk_request_id, owner_id, walker_id, rating, comment)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (walk_request_id) DO NOTHING
            RETURNING {_columns(_REVIEW_COLUMNS)}
        """
        params = (
            draft.walk_request_id,
            draft.owner_id,
            draft.walker_id,
            draft.rating,
            draft.comment,
        )
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, params)
            row = cursor.fetchone()
            conn.commit()

        if row is None:
            logger.info("Duplicate review rejected for walk request %s", draft.walk_request_id)
            return None
        return _review(row)

    def get(self, review_id: str) -> ReviewView | None:
        sql = f"{_REVIEW_VIEW_SELECT} WHERE r.id = %s"
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (review_id,))
            row = cursor.fetchone()
        return _review_view(row) if row is not None else None

    def list_for_party(
        self,
        *,
        owner_id: str | None = None,
        walker_id: str | None = None,
        offset: int = 0,
        limit: int = 10,
    ) -> tuple[list[ReviewView], int]:
        conditions, params = _party_filter("r", owner_id, walker_id)
        where = _where(conditions)

        list_sql = f"""
            {_REVIEW_VIEW_SELECT}
            {where}
            ORDER BY r.created_at DESC, r.id
            LIMIT %s OFFSET %s
        """
        count_sql = f"SELECT COUNT(*) AS total FROM reviews r {where}"

        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(list_sql, (*params, limit, offset))
            rows = cursor.fetchall()
            cursor.execute(count_sql, params)
            total = cursor.fetchone()["total"]
        return [_review_view(row) for row in rows], total

    def rating_histogram(self, walker_id: str) -> dict[int, int]:
        sql = """
            SELECT rating, COUNT(*) AS count
            FROM reviews
            WHERE walker_id = %s
            GROUP BY rating
        """
        with self._pool.connection() as conn, conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql, (walker_id,))
            rows = cursor.fetchall()
        return {row["rating"]: row["count"] for row in rows}

    def reviewed_walk_ids(self, owner_id: str) -> set[str]:
        sql = "SELECT walk_request_id FROM reviews WHERE owner_id = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (owner_id,))
            rows = cursor.fetchall()
        return {row[0] for row in rows}


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: walkbook/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e


def reset_tables(pool: ConnectionPool) -> None:
    """Delete every row, children first. Intended for tests and local resets."""
    with pool.connection() as conn:
        for table in ("reviews", "walk_requests", "pets", "users"):
            conn.execute(f"DELETE FROM {table}")
        conn.commit()
