from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.engine import make_url

LOCAL_DB_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "postgres", "merchtech_postgres"})
TEST_DB_SUFFIXES = ("_test", "_tests", "-test")


@dataclass(frozen=True, slots=True)
class IntegrationDbSafetyResult:
    is_safe: bool
    reason: str
    database_name: str
    host: str


def assess_integration_db_safety(database_url: str) -> IntegrationDbSafetyResult:
    parsed = make_url(database_url)
    db_name = (parsed.database or "").strip()
    host = (parsed.host or "").strip().lower()

    reason = "ok"
    if parsed.get_backend_name() != "postgresql":
        reason = "Integration tests run only against PostgreSQL."
    elif not db_name:
        reason = "Database name is empty."
    elif not db_name.lower().endswith(TEST_DB_SUFFIXES):
        reason = "Database name must end with '_test' (or '_tests' / '-test')."
    elif host not in LOCAL_DB_HOSTS:
        reason = f"Host '{host}' is not a local integration-test host."

    return IntegrationDbSafetyResult(
        is_safe=reason == "ok",
        reason=reason,
        database_name=db_name,
        host=host,
    )


def assert_safe_integration_db(database_url: str) -> None:
    result = assess_integration_db_safety(database_url)
    if result.is_safe:
        return

    raise RuntimeError(
        "Refusing to TRUNCATE tables of a database that does not look like a test database.\n"
        f"Reason: {result.reason}\n"
        f"Resolved DB: name='{result.database_name}' host='{result.host}'\n"
        "Point DATABASE_URL at a local database such as 'merchtech_test'."
    )
