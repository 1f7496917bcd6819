from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

LOCAL_TEST_HOSTS = frozenset(
    {
        "localhost",
        "127.0.0.1",
        "::1",
        "postgres",
        "reward_ledger_postgres",
    }
)
TEST_DB_MARKER = "test"


@dataclass(frozen=True, slots=True)
class IntegrationDbTarget:
    database_name: str
    host: str
    problems: tuple[str, ...]

    @property
    def is_safe(self) -> bool:
        return not self.problems

    @property
    def reason(self) -> str:
        return "; ".join(self.problems) or "ok"


def assess_integration_db_safety(database_url: str) -> IntegrationDbTarget:
    """Integration tests truncate every ledger table, so only a local PostgreSQL
    database whose name says ``test`` is an acceptable target."""
    try:
        parsed = make_url(database_url)
    except ArgumentError:
        return IntegrationDbTarget(
            database_name="",
            host="",
            problems=("DATABASE_URL cannot be parsed",),
        )

    database_name = (parsed.database or "").strip()
    host = (parsed.host or "").strip().lower()
    problems: list[str] = []
    if parsed.get_backend_name() != "postgresql":
        problems.append("backend is not PostgreSQL")
    if TEST_DB_MARKER not in database_name.lower():
        problems.append(f"database name does not contain '{TEST_DB_MARKER}'")
    if host not in LOCAL_TEST_HOSTS:
        problems.append(f"host '{host}' is not a local test host")

    return IntegrationDbTarget(
        database_name=database_name,
        host=host,
        problems=tuple(problems),
    )


def assert_safe_integration_db(database_url: str) -> None:
    target = assess_integration_db_safety(database_url)
    if target.is_safe:
        return

    raise RuntimeError(
        "Refusing to run integration tests against "
        f"db='{target.database_name}' host='{target.host}': {target.reason}. "
        "Point DATABASE_URL at a local test database such as 'reward_ledger_test'."
    )
