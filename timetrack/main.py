"""ZMI Time — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from timetrack.absences.router import (
    absence_types_router,
    absences_router,
    employee_absences_router,
)
from timetrack.access.router import assignments_router, profiles_router, zones_router
from timetrack.audit_logs.router import router as audit_logs_router
from timetrack.auth.router import router as auth_router
from timetrack.auth.router import users_router
from timetrack.bookings.router import bookings_router, employee_bookings_router
from timetrack.common.exceptions import register_exception_handlers
from timetrack.common.rate_limit import limiter
from timetrack.config import settings
from timetrack.daily_values.router import daily_values_router, employee_daily_router
from timetrack.database import engine
from timetrack.day_plans.router import router as day_plans_router
from timetrack.employees.router import router as employees_router
from timetrack.export_interfaces.router import accounts_router, export_interfaces_router
from timetrack.holidays.router import router as holidays_router
from timetrack.logging_config import setup_logging
from timetrack.macros.router import router as macros_router
from timetrack.monthly_values.router import employee_months_router, monthly_values_router
from timetrack.tariffs.router import router as tariffs_router
from timetrack.tenants.router import router as tenants_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    logger.info("ZMI Time API starting (environment=%s)", settings.ENVIRONMENT)
    yield
    await engine.dispose()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    setup_logging()

    app = FastAPI(
        title="ZMI Time",
        description="Workforce time tracking: bookings, absences, daily and monthly evaluation",
        version="1.0.0",
        docs_url="/api/docs" if not settings.is_production else None,
        redoc_url="/api/redoc" if not settings.is_production else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth")
    app.include_router(users_router, prefix="/api/v1/users")
    app.include_router(tenants_router, prefix="/api/v1/tenants")

    # Employee-scoped sub-resources share the /employees prefix
    app.include_router(employees_router, prefix="/api/v1/employees")
    app.include_router(employee_bookings_router, prefix="/api/v1/employees")
    app.include_router(employee_absences_router, prefix="/api/v1/employees")
    app.include_router(employee_daily_router, prefix="/api/v1/employees")
    app.include_router(employee_months_router, prefix="/api/v1/employees")

    app.include_router(tariffs_router, prefix="/api/v1/tariffs")
    app.include_router(day_plans_router, prefix="/api/v1/day-plans")
    app.include_router(holidays_router, prefix="/api/v1/holidays")
    app.include_router(absence_types_router, prefix="/api/v1/absence-types")
    app.include_router(absences_router, prefix="/api/v1/absences")
    app.include_router(bookings_router, prefix="/api/v1/bookings")
    app.include_router(daily_values_router, prefix="/api/v1/daily-values")
    app.include_router(monthly_values_router, prefix="/api/v1/monthly-values")
    app.include_router(accounts_router, prefix="/api/v1/accounts")
    app.include_router(export_interfaces_router, prefix="/api/v1/export-interfaces")
    app.include_router(macros_router, prefix="/api/v1/macros")
    app.include_router(zones_router, prefix="/api/v1/access-zones")
    app.include_router(profiles_router, prefix="/api/v1/access-profiles")
    app.include_router(assignments_router, prefix="/api/v1/access-assignments")
    app.include_router(audit_logs_router, prefix="/api/v1/audit-logs")

    return app


app = create_app()
