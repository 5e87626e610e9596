"""001 – Initial schema: employees, leave types, balances, requests, decisions.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 10:00:00.000000+00:00
"""

from alembic import op

# Revision identifiers
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

ENUM_TYPES: list[tuple[str, list[str]]] = [
    ("leave_status", ["pending", "approved", "rejected", "cancelled"]),
]


def _create_enum(name: str, values: list[str]) -> None:
    vals = ", ".join(f"'{v}'" for v in values)
    op.execute(f"CREATE TYPE {name} AS ENUM ({vals})")


def _drop_enum(name: str) -> None:
    op.execute(f"DROP TYPE IF EXISTS {name}")


# ---------------------------------------------------------------------------
# UPGRADE
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. employees ──────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE employees (
            employee_id     VARCHAR(20) PRIMARY KEY,
            first_name      VARCHAR(100) NOT NULL,
            last_name       VARCHAR(100) NOT NULL,
            email           VARCHAR(255) NOT NULL UNIQUE,
            department      VARCHAR(100) NOT NULL,
            manager_id      VARCHAR(20) REFERENCES employees(employee_id),
            created_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_employees_manager_id ON employees(manager_id)")

    # ── 2. leave_types ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_types (
            code                    VARCHAR(10) PRIMARY KEY,
            description             VARCHAR(200) NOT NULL,
            max_days_per_request    INTEGER,
            created_at              TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # ── 3. leave_balances ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_balances (
            id              UUID PRIMARY KEY,
            employee_id     VARCHAR(20) NOT NULL REFERENCES employees(employee_id),
            leave_type_code VARCHAR(10) NOT NULL REFERENCES leave_types(code),
            accrued_days    INTEGER NOT NULL DEFAULT 0,
            used_days       INTEGER NOT NULL DEFAULT 0,
            version         INTEGER NOT NULL DEFAULT 1,
            updated_at      TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_leave_balance UNIQUE (employee_id, leave_type_code),
            CONSTRAINT ck_leave_balance_used_non_negative CHECK (used_days >= 0),
            CONSTRAINT ck_leave_balance_used_within_accrued
                CHECK (used_days <= accrued_days)
        )
    """)

    # ── 4. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_requests (
            id                  UUID PRIMARY KEY,
            employee_id         VARCHAR(20) NOT NULL REFERENCES employees(employee_id),
            leave_type_code     VARCHAR(10) NOT NULL REFERENCES leave_types(code),
            start_date          DATE NOT NULL,
            end_date            DATE NOT NULL,
            days_requested      INTEGER NOT NULL,
            reason              TEXT,
            status              leave_status NOT NULL DEFAULT 'pending',
            submitted_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            decided_by          VARCHAR(20),
            decided_at          TIMESTAMPTZ,
            decision_comment    TEXT,
            updated_at          TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_leave_request_dates CHECK (start_date <= end_date)
        )
    """)
    op.execute(
        "CREATE INDEX ix_leave_requests_employee_status "
        "ON leave_requests(employee_id, status)"
    )

    # ── 5. leave_decisions (append-only) ──────────────────────────────────
    op.execute("""
        CREATE TABLE leave_decisions (
            id                  UUID PRIMARY KEY,
            leave_request_id    UUID NOT NULL REFERENCES leave_requests(id),
            actor_id            VARCHAR(20),
            status              leave_status NOT NULL,
            comment             TEXT,
            decided_at          TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute(
        "CREATE INDEX ix_leave_decisions_request "
        "ON leave_decisions(leave_request_id, decided_at)"
    )


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "leave_decisions",
        "leave_requests",
        "leave_balances",
        "leave_types",
        "employees",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    # Drop enum types
    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)
