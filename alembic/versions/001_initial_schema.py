"""001 – Initial schema: users, teams, leave tables, policies, settings, audit.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000+00:00
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
    ("user_role", ["member", "admin", "owner"]),
    ("team_role", ["owner", "member"]),
    ("leave_status", ["pending", "approved", "rejected"]),
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
    # ── Extensions ────────────────────────────────────────────────────────
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── Enum types ────────────────────────────────────────────────────────
    for name, values in ENUM_TYPES:
        _create_enum(name, values)

    # ── 1. users ──────────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE users (
            id            UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name          VARCHAR(100) NOT NULL,
            email         VARCHAR(255) NOT NULL UNIQUE,
            auth_provider VARCHAR(20) NOT NULL DEFAULT 'google',
            google_id     VARCHAR(255) UNIQUE,
            picture_url   TEXT,
            role          user_role NOT NULL DEFAULT 'member',
            deleted_at    TIMESTAMPTZ,
            created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at    TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # ── 2. user_sessions ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE user_sessions (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id     UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            token_hash  VARCHAR(128) NOT NULL,
            ip_address  VARCHAR(45),
            user_agent  TEXT,
            expires_at  TIMESTAMPTZ NOT NULL,
            is_revoked  BOOLEAN NOT NULL DEFAULT FALSE,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_user_sessions_token_hash ON user_sessions(token_hash)")

    # ── 3. teams / team_members ───────────────────────────────────────────
    op.execute("""
        CREATE TABLE teams (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name        VARCHAR(100) NOT NULL,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE team_members (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id     UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            team_id     UUID NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
            role        team_role NOT NULL DEFAULT 'member',
            joined_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_team_member UNIQUE (user_id, team_id)
        )
    """)

    # ── 4. leave_types ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_types (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name              VARCHAR(50) NOT NULL,
            color             VARCHAR(7) NOT NULL DEFAULT '#3B82F6',
            is_paid           BOOLEAN NOT NULL DEFAULT TRUE,
            requires_approval BOOLEAN NOT NULL DEFAULT TRUE,
            created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at        TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # ── 5. leave_allowances ───────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_allowances (
            id            UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id       UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            year          INTEGER NOT NULL,
            total_days    NUMERIC(5,1) NOT NULL DEFAULT 25,
            used_days     NUMERIC(5,1) NOT NULL DEFAULT 0,
            carried_over  NUMERIC(5,1) NOT NULL DEFAULT 0,
            created_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at    TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_leave_allowance_user_year UNIQUE (user_id, year)
        )
    """)

    # ── 6. leave_requests ─────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE leave_requests (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id           UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            leave_type_id     UUID NOT NULL REFERENCES leave_types(id),
            start_date        DATE NOT NULL,
            end_date          DATE NOT NULL,
            total_days        NUMERIC(4,1) NOT NULL,
            reason            TEXT,
            status            leave_status NOT NULL DEFAULT 'pending',
            approved_by       UUID REFERENCES users(id) ON DELETE SET NULL,
            approved_at       TIMESTAMPTZ,
            rejection_reason  TEXT,
            created_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at        TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_leave_request_dates CHECK (end_date >= start_date)
        )
    """)
    op.execute("CREATE INDEX ix_leave_requests_user_status ON leave_requests(user_id, status)")
    op.execute("CREATE INDEX ix_leave_requests_created_at ON leave_requests(created_at)")

    # ── 7. leave_policies / leave_policy_rules ────────────────────────────
    op.execute("""
        CREATE TABLE leave_policies (
            id                     UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name                   VARCHAR(100) NOT NULL,
            description            TEXT,
            leave_type_id          UUID REFERENCES leave_types(id) ON DELETE CASCADE,
            min_notice_days        INTEGER NOT NULL DEFAULT 0,
            max_consecutive_days   INTEGER,
            max_requests_per_year  INTEGER,
            requires_approval      BOOLEAN NOT NULL DEFAULT TRUE,
            is_active              BOOLEAN NOT NULL DEFAULT TRUE,
            created_at             TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at             TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE leave_policy_rules (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            policy_id   UUID NOT NULL REFERENCES leave_policies(id) ON DELETE CASCADE,
            rule_type   VARCHAR(50) NOT NULL,
            rule_data   JSONB NOT NULL DEFAULT '{}',
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # ── 8. company_settings ───────────────────────────────────────────────
    op.execute("""
        CREATE TABLE company_settings (
            id                         UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            company_name               VARCHAR(100) NOT NULL DEFAULT 'Your Company',
            default_annual_leave_days  INTEGER NOT NULL DEFAULT 25,
            allow_carry_over           BOOLEAN NOT NULL DEFAULT TRUE,
            max_carry_over_days        INTEGER NOT NULL DEFAULT 5,
            fiscal_year_start          VARCHAR(5) NOT NULL DEFAULT '01-01',
            estimated_daily_cost       NUMERIC(10,2) NOT NULL DEFAULT 150,
            working_days               INTEGER NOT NULL DEFAULT 1,
            created_at                 TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at                 TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)

    # ── 9. audit_trail ────────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_trail (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            actor_id     UUID REFERENCES users(id) ON DELETE SET NULL,
            action       VARCHAR(50) NOT NULL,
            entity_type  VARCHAR(50) NOT NULL,
            entity_id    UUID,
            old_values   JSONB,
            new_values   JSONB,
            ip_address   VARCHAR(45),
            user_agent   TEXT,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX ix_audit_trail_actor_id   ON audit_trail(actor_id)")
    op.execute("CREATE INDEX ix_audit_trail_entity     ON audit_trail(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_trail_created_at ON audit_trail(created_at)")

    # ══════════════════════════════════════════════════════════════════════
    # SEED DATA
    # ══════════════════════════════════════════════════════════════════════

    op.execute("INSERT INTO company_settings DEFAULT VALUES")


# ---------------------------------------------------------------------------
# DOWNGRADE
# ---------------------------------------------------------------------------


def downgrade() -> None:
    # Drop tables in reverse dependency order
    tables = [
        "audit_trail",
        "company_settings",
        "leave_policy_rules",
        "leave_policies",
        "leave_requests",
        "leave_allowances",
        "leave_types",
        "team_members",
        "teams",
        "user_sessions",
        "users",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    # Drop enum types
    for name, _ in reversed(ENUM_TYPES):
        _drop_enum(name)

    op.execute('DROP EXTENSION IF EXISTS "uuid-ossp"')
