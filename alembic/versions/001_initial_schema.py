"""001 – Initial schema: tenants, auth, time plans, bookings, evaluation, export, macros, access, audit.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-17 09:00:00.000000+02:00
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

TIMESTAMPS = """
        created_at  TIMESTAMPTZ NOT NULL DEFAULT now(),
        updated_at  TIMESTAMPTZ NOT NULL DEFAULT now()"""

TENANT = "tenant_id UUID NOT NULL REFERENCES tenants(id) ON DELETE CASCADE"


def _tenant_index(table: str) -> None:
    op.execute(f"CREATE INDEX ix_{table}_tenant_id ON {table}(tenant_id)")


# ---------------------------------------------------------------------------
# Upgrade
# ---------------------------------------------------------------------------


def upgrade() -> None:
    # Extensions
    op.execute('CREATE EXTENSION IF NOT EXISTS "uuid-ossp"')

    # ── Tenants ────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE tenants (
            id          UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            name        VARCHAR(255) NOT NULL,
            slug        VARCHAR(100) NOT NULL UNIQUE,
            is_active   BOOLEAN NOT NULL DEFAULT TRUE,
            settings    JSONB,{TIMESTAMPS}
        )
    """)

    # ── Day plans ──────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE day_plans (
            id                      UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            code                    VARCHAR(20) NOT NULL,
            name                    VARCHAR(255) NOT NULL,
            description             TEXT,
            plan_type               VARCHAR(20) NOT NULL DEFAULT 'fixed',
            come_from               INTEGER,
            come_to                 INTEGER,
            go_from                 INTEGER,
            go_to                   INTEGER,
            core_start              INTEGER,
            core_end                INTEGER,
            regular_hours           INTEGER NOT NULL DEFAULT 480,
            regular_hours_2         INTEGER,
            from_employee_master    BOOLEAN NOT NULL DEFAULT FALSE,
            tolerance_come_plus     INTEGER NOT NULL DEFAULT 0,
            tolerance_come_minus    INTEGER NOT NULL DEFAULT 0,
            tolerance_go_plus       INTEGER NOT NULL DEFAULT 0,
            tolerance_go_minus      INTEGER NOT NULL DEFAULT 0,
            rounding_come_type      VARCHAR(20) NOT NULL DEFAULT 'none',
            rounding_come_interval  INTEGER NOT NULL DEFAULT 0,
            rounding_come_add_value INTEGER NOT NULL DEFAULT 0,
            rounding_go_type        VARCHAR(20) NOT NULL DEFAULT 'none',
            rounding_go_interval    INTEGER NOT NULL DEFAULT 0,
            rounding_go_add_value   INTEGER NOT NULL DEFAULT 0,
            round_all_bookings      BOOLEAN NOT NULL DEFAULT FALSE,
            min_work_time           INTEGER,
            max_net_work_time       INTEGER,
            variable_work_time      BOOLEAN NOT NULL DEFAULT FALSE,
            holiday_credit_cat1     INTEGER,
            holiday_credit_cat2     INTEGER,
            holiday_credit_cat3     INTEGER,
            no_booking_behavior     VARCHAR(30) NOT NULL DEFAULT 'error',
            is_active               BOOLEAN NOT NULL DEFAULT TRUE,{TIMESTAMPS},
            CONSTRAINT uq_day_plans_tenant_code UNIQUE (tenant_id, code)
        )
    """)
    _tenant_index("day_plans")

    op.execute("""
        CREATE TABLE day_plan_breaks (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            day_plan_id         UUID NOT NULL REFERENCES day_plans(id) ON DELETE CASCADE,
            break_type          VARCHAR(20) NOT NULL,
            start_time          INTEGER,
            end_time            INTEGER,
            duration            INTEGER NOT NULL,
            after_work_minutes  INTEGER,
            auto_deduct         BOOLEAN NOT NULL DEFAULT TRUE,
            is_paid             BOOLEAN NOT NULL DEFAULT FALSE,
            minutes_difference  BOOLEAN NOT NULL DEFAULT FALSE,
            sort_order          INTEGER NOT NULL DEFAULT 0
        )
    """)
    op.execute("CREATE INDEX ix_day_plan_breaks_day_plan_id ON day_plan_breaks(day_plan_id)")

    # ── Tariffs ────────────────────────────────────────────────────
    weekday_fks = ",\n".join(
        f"            day_plan_{day}_id UUID REFERENCES day_plans(id) ON DELETE SET NULL"
        for day in ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
    )
    op.execute(f"""
        CREATE TABLE tariffs (
            id                      UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            code                    VARCHAR(20) NOT NULL,
            name                    VARCHAR(255) NOT NULL,
            description             TEXT,
{weekday_fks},
            credit_type             VARCHAR(20) NOT NULL DEFAULT 'no_evaluation',
            flextime_threshold      INTEGER,
            max_flextime_per_month  INTEGER,
            upper_limit_annual      INTEGER,
            lower_limit_annual      INTEGER,
            annual_floor_balance    INTEGER,
            is_active               BOOLEAN NOT NULL DEFAULT TRUE,{TIMESTAMPS},
            CONSTRAINT uq_tariffs_tenant_code UNIQUE (tenant_id, code)
        )
    """)
    _tenant_index("tariffs")

    # ── Employees ──────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE employees (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            personnel_number    VARCHAR(20) NOT NULL,
            pin                 VARCHAR(20),
            first_name          VARCHAR(100) NOT NULL,
            last_name           VARCHAR(100) NOT NULL,
            email               VARCHAR(255),
            entry_date          DATE NOT NULL,
            exit_date           DATE,
            weekly_hours        DOUBLE PRECISION,
            daily_target_hours  DOUBLE PRECISION,
            tariff_id           UUID REFERENCES tariffs(id) ON DELETE SET NULL,
            is_active           BOOLEAN NOT NULL DEFAULT TRUE,{TIMESTAMPS},
            CONSTRAINT uq_employees_tenant_personnel_number UNIQUE (tenant_id, personnel_number),
            CONSTRAINT uq_employees_tenant_pin UNIQUE (tenant_id, pin)
        )
    """)
    _tenant_index("employees")

    # ── Users & sessions ───────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE users (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            email           VARCHAR(255) NOT NULL UNIQUE,
            display_name    VARCHAR(255) NOT NULL,
            password_hash   VARCHAR(255),
            role            VARCHAR(20) NOT NULL DEFAULT 'employee',
            employee_id     UUID REFERENCES employees(id) ON DELETE SET NULL,
            is_active       BOOLEAN NOT NULL DEFAULT TRUE,
            last_login_at   TIMESTAMPTZ,{TIMESTAMPS}
        )
    """)
    _tenant_index("users")

    op.execute("""
        CREATE TABLE user_sessions (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            user_id             UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            token_hash          VARCHAR(128) NOT NULL,
            refresh_token_hash  VARCHAR(128),
            ip_address          INET,
            user_agent          TEXT,
            expires_at          TIMESTAMPTZ NOT NULL,
            is_revoked          BOOLEAN NOT NULL DEFAULT FALSE,
            created_at          TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_user_sessions_user_id       ON user_sessions(user_id)")
    op.execute("CREATE INDEX ix_user_sessions_token_hash    ON user_sessions(token_hash)")
    op.execute("CREATE INDEX ix_user_sessions_refresh_token ON user_sessions(refresh_token_hash)")

    # ── Per-day plan assignments ───────────────────────────────────
    op.execute(f"""
        CREATE TABLE employee_day_plans (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            employee_id  UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            plan_date    DATE NOT NULL,
            day_plan_id  UUID REFERENCES day_plans(id) ON DELETE RESTRICT,
            notes        TEXT,{TIMESTAMPS},
            CONSTRAINT uq_employee_day_plans_employee_date UNIQUE (employee_id, plan_date)
        )
    """)
    _tenant_index("employee_day_plans")

    # ── Holidays ───────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE holidays (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            holiday_date    DATE NOT NULL,
            name            VARCHAR(255) NOT NULL,
            category        INTEGER NOT NULL DEFAULT 1 CHECK (category BETWEEN 1 AND 3),
            applies_to_all  BOOLEAN NOT NULL DEFAULT TRUE,{TIMESTAMPS},
            CONSTRAINT uq_holidays_tenant_date UNIQUE (tenant_id, holiday_date)
        )
    """)
    _tenant_index("holidays")

    # ── Absences ───────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE absence_types (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            code         VARCHAR(10) NOT NULL,
            name         VARCHAR(100) NOT NULL,
            description  TEXT,
            category     VARCHAR(20) NOT NULL,
            portion      INTEGER NOT NULL DEFAULT 1,
            priority     INTEGER NOT NULL DEFAULT 0,
            color        VARCHAR(7),
            is_active    BOOLEAN NOT NULL DEFAULT TRUE,{TIMESTAMPS},
            CONSTRAINT uq_absence_types_tenant_code UNIQUE (tenant_id, code)
        )
    """)
    _tenant_index("absence_types")

    op.execute(f"""
        CREATE TABLE absence_days (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            employee_id       UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            absence_date      DATE NOT NULL,
            absence_type_id   UUID NOT NULL REFERENCES absence_types(id) ON DELETE RESTRICT,
            duration          DOUBLE PRECISION NOT NULL DEFAULT 1.0,
            status            VARCHAR(20) NOT NULL DEFAULT 'pending',
            notes             TEXT,
            approved_by       UUID REFERENCES users(id) ON DELETE SET NULL,
            approved_at       TIMESTAMPTZ,
            rejection_reason  TEXT,
            created_by        UUID REFERENCES users(id) ON DELETE SET NULL,{TIMESTAMPS},
            CONSTRAINT uq_absence_days_employee_date UNIQUE (employee_id, absence_date)
        )
    """)
    _tenant_index("absence_days")

    # ── Bookings ───────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE bookings (
            id               UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            employee_id      UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            booking_date     DATE NOT NULL,
            direction        VARCHAR(3) NOT NULL,
            category         VARCHAR(10) NOT NULL DEFAULT 'work',
            original_time    INTEGER NOT NULL,
            edited_time      INTEGER NOT NULL,
            calculated_time  INTEGER,
            pair_id          UUID,
            source           VARCHAR(20) NOT NULL DEFAULT 'web',
            notes            TEXT,
            created_by       UUID REFERENCES users(id) ON DELETE SET NULL,{TIMESTAMPS}
        )
    """)
    _tenant_index("bookings")
    op.execute("CREATE INDEX ix_bookings_employee_date ON bookings(employee_id, booking_date)")

    # ── Daily & monthly values ─────────────────────────────────────
    op.execute(f"""
        CREATE TABLE daily_values (
            id              UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            employee_id     UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            value_date      DATE NOT NULL,
            status          VARCHAR(20) NOT NULL DEFAULT 'pending',
            gross_time      INTEGER NOT NULL DEFAULT 0,
            net_time        INTEGER NOT NULL DEFAULT 0,
            target_time     INTEGER NOT NULL DEFAULT 0,
            overtime        INTEGER NOT NULL DEFAULT 0,
            undertime       INTEGER NOT NULL DEFAULT 0,
            break_time      INTEGER NOT NULL DEFAULT 0,
            capped_time     INTEGER NOT NULL DEFAULT 0,
            first_come      INTEGER,
            last_go         INTEGER,
            booking_count   INTEGER NOT NULL DEFAULT 0,
            has_error       BOOLEAN NOT NULL DEFAULT FALSE,
            error_codes     JSONB NOT NULL DEFAULT '[]'::jsonb,
            warnings        JSONB NOT NULL DEFAULT '[]'::jsonb,
            calculated_at   TIMESTAMPTZ,{TIMESTAMPS},
            CONSTRAINT uq_daily_values_employee_date UNIQUE (employee_id, value_date)
        )
    """)
    _tenant_index("daily_values")

    op.execute(f"""
        CREATE TABLE monthly_values (
            id                  UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            employee_id         UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            year                INTEGER NOT NULL,
            month               INTEGER NOT NULL CHECK (month BETWEEN 1 AND 12),
            total_gross_time    INTEGER NOT NULL DEFAULT 0,
            total_net_time      INTEGER NOT NULL DEFAULT 0,
            total_target_time   INTEGER NOT NULL DEFAULT 0,
            total_overtime      INTEGER NOT NULL DEFAULT 0,
            total_undertime     INTEGER NOT NULL DEFAULT 0,
            total_break_time    INTEGER NOT NULL DEFAULT 0,
            flextime_start      INTEGER NOT NULL DEFAULT 0,
            flextime_change     INTEGER NOT NULL DEFAULT 0,
            flextime_end        INTEGER NOT NULL DEFAULT 0,
            flextime_credited   INTEGER NOT NULL DEFAULT 0,
            flextime_forfeited  INTEGER NOT NULL DEFAULT 0,
            flextime_reset_at   TIMESTAMPTZ,
            vacation_taken      DOUBLE PRECISION NOT NULL DEFAULT 0,
            sick_days           INTEGER NOT NULL DEFAULT 0,
            other_absence_days  INTEGER NOT NULL DEFAULT 0,
            work_days           INTEGER NOT NULL DEFAULT 0,
            days_with_errors    INTEGER NOT NULL DEFAULT 0,
            warnings            JSONB NOT NULL DEFAULT '[]'::jsonb,
            is_closed           BOOLEAN NOT NULL DEFAULT FALSE,
            closed_at           TIMESTAMPTZ,
            closed_by           UUID REFERENCES users(id) ON DELETE SET NULL,
            close_reason        TEXT,
            reopened_at         TIMESTAMPTZ,
            reopened_by         UUID REFERENCES users(id) ON DELETE SET NULL,
            reopen_reason       TEXT,{TIMESTAMPS},
            CONSTRAINT uq_monthly_values_employee_month UNIQUE (employee_id, year, month)
        )
    """)
    _tenant_index("monthly_values")

    # ── Accounts & export interfaces ───────────────────────────────
    op.execute(f"""
        CREATE TABLE accounts (
            id                   UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            code                 VARCHAR(20) NOT NULL,
            name                 VARCHAR(255) NOT NULL,
            description          TEXT,
            account_type         VARCHAR(20) NOT NULL DEFAULT 'day',
            unit                 VARCHAR(20) NOT NULL DEFAULT 'minutes',
            is_payroll_relevant  BOOLEAN NOT NULL DEFAULT TRUE,
            is_active            BOOLEAN NOT NULL DEFAULT TRUE,{TIMESTAMPS},
            CONSTRAINT uq_accounts_tenant_code UNIQUE (tenant_id, code)
        )
    """)
    _tenant_index("accounts")

    op.execute(f"""
        CREATE TABLE export_interfaces (
            id                UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            interface_number  INTEGER NOT NULL,
            name              VARCHAR(255) NOT NULL,
            mandant_number    VARCHAR(50),
            export_script     VARCHAR(255),
            export_path       VARCHAR(500),
            output_filename   VARCHAR(255),
            is_active         BOOLEAN NOT NULL DEFAULT TRUE,{TIMESTAMPS},
            CONSTRAINT uq_export_interfaces_tenant_number UNIQUE (tenant_id, interface_number)
        )
    """)
    _tenant_index("export_interfaces")

    op.execute("""
        CREATE TABLE export_interface_accounts (
            id                   UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            export_interface_id  UUID NOT NULL REFERENCES export_interfaces(id) ON DELETE CASCADE,
            account_id           UUID NOT NULL REFERENCES accounts(id) ON DELETE RESTRICT,
            sort_order           INTEGER NOT NULL DEFAULT 0,
            CONSTRAINT uq_export_interface_accounts UNIQUE (export_interface_id, account_id)
        )
    """)

    # ── Macros ─────────────────────────────────────────────────────
    op.execute(f"""
        CREATE TABLE macros (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            name           VARCHAR(255) NOT NULL,
            description    TEXT,
            macro_type     VARCHAR(20) NOT NULL,
            action_type    VARCHAR(50) NOT NULL,
            action_params  JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            is_active      BOOLEAN NOT NULL DEFAULT TRUE,{TIMESTAMPS},
            CONSTRAINT uq_macros_tenant_name UNIQUE (tenant_id, name)
        )
    """)
    _tenant_index("macros")

    op.execute(f"""
        CREATE TABLE macro_assignments (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            macro_id       UUID NOT NULL REFERENCES macros(id) ON DELETE CASCADE,
            tariff_id      UUID REFERENCES tariffs(id) ON DELETE RESTRICT,
            employee_id    UUID REFERENCES employees(id) ON DELETE CASCADE,
            execution_day  INTEGER NOT NULL,
            is_active      BOOLEAN NOT NULL DEFAULT TRUE,{TIMESTAMPS},
            CONSTRAINT ck_macro_assignments_target CHECK (
                (tariff_id IS NOT NULL AND employee_id IS NULL) OR
                (tariff_id IS NULL AND employee_id IS NOT NULL)
            )
        )
    """)
    _tenant_index("macro_assignments")

    op.execute(f"""
        CREATE TABLE macro_executions (
            id             UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            macro_id       UUID NOT NULL REFERENCES macros(id) ON DELETE CASCADE,
            assignment_id  UUID REFERENCES macro_assignments(id) ON DELETE SET NULL,
            status         VARCHAR(20) NOT NULL DEFAULT 'pending',
            trigger_type   VARCHAR(20) NOT NULL DEFAULT 'manual',
            started_at     TIMESTAMPTZ,
            completed_at   TIMESTAMPTZ,
            result         JSONB NOT NULL DEFAULT '{{}}'::jsonb,
            error_message  TEXT,
            triggered_by   UUID REFERENCES users(id) ON DELETE SET NULL,
            created_at     TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    _tenant_index("macro_executions")

    # ── Access control ─────────────────────────────────────────────
    for table in ("access_zones", "access_profiles"):
        op.execute(f"""
            CREATE TABLE {table} (
                id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
                {TENANT},
                code         VARCHAR(20) NOT NULL,
                name         VARCHAR(255) NOT NULL,
                description  TEXT,
                is_active    BOOLEAN NOT NULL DEFAULT TRUE,{TIMESTAMPS},
                CONSTRAINT uq_{table}_tenant_code UNIQUE (tenant_id, code)
            )
        """)
        _tenant_index(table)

    op.execute("""
        CREATE TABLE access_profile_zones (
            profile_id  UUID NOT NULL REFERENCES access_profiles(id) ON DELETE CASCADE,
            zone_id     UUID NOT NULL REFERENCES access_zones(id) ON DELETE RESTRICT,
            PRIMARY KEY (profile_id, zone_id)
        )
    """)

    op.execute(f"""
        CREATE TABLE employee_access_assignments (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            {TENANT},
            employee_id  UUID NOT NULL REFERENCES employees(id) ON DELETE CASCADE,
            profile_id   UUID NOT NULL REFERENCES access_profiles(id) ON DELETE RESTRICT,
            valid_from   DATE,
            valid_to     DATE,{TIMESTAMPS}
        )
    """)
    _tenant_index("employee_access_assignments")
    op.execute(
        "CREATE INDEX ix_employee_access_assignments_employee_id "
        "ON employee_access_assignments(employee_id)"
    )

    # ── Audit log ──────────────────────────────────────────────────
    op.execute("""
        CREATE TABLE audit_logs (
            id           UUID PRIMARY KEY DEFAULT uuid_generate_v4(),
            tenant_id    UUID REFERENCES tenants(id) ON DELETE CASCADE,
            user_id      UUID REFERENCES users(id) ON DELETE SET NULL,
            action       VARCHAR(50) NOT NULL,
            entity_type  VARCHAR(50) NOT NULL,
            entity_id    UUID NOT NULL,
            entity_name  VARCHAR(255),
            old_values   JSONB,
            new_values   JSONB,
            ip_address   INET,
            user_agent   TEXT,
            created_at   TIMESTAMPTZ NOT NULL DEFAULT now()
        )
    """)
    op.execute("CREATE INDEX ix_audit_logs_tenant_created ON audit_logs(tenant_id, created_at)")
    op.execute("CREATE INDEX ix_audit_logs_entity         ON audit_logs(entity_type, entity_id)")
    op.execute("CREATE INDEX ix_audit_logs_user_id        ON audit_logs(user_id)")
    op.execute("CREATE INDEX ix_audit_logs_action         ON audit_logs(action)")


# ---------------------------------------------------------------------------
# Downgrade
# ---------------------------------------------------------------------------


def downgrade() -> None:
    tables = [
        "audit_logs",
        "employee_access_assignments",
        "access_profile_zones",
        "access_profiles",
        "access_zones",
        "macro_executions",
        "macro_assignments",
        "macros",
        "export_interface_accounts",
        "export_interfaces",
        "accounts",
        "monthly_values",
        "daily_values",
        "bookings",
        "absence_days",
        "absence_types",
        "holidays",
        "employee_day_plans",
        "user_sessions",
        "users",
        "employees",
        "tariffs",
        "day_plan_breaks",
        "day_plans",
        "tenants",
    ]
    for t in tables:
        op.execute(f"DROP TABLE IF EXISTS {t} CASCADE")

    op.execute('DROP EXTENSION IF EXISTS "uuid-ossp"')
