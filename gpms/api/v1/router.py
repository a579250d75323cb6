"""API v1 router configuration."""

from fastapi import APIRouter

from gpms.api.v1.endpoints import (
    appointments,
    form_templates,
    health,
    invoices,
    patients,
    practice,
    rooms,
    staff,
)

api_router = APIRouter()

# Include routers
api_router.include_router(health.router, tags=["Health"])
api_router.include_router(practice.router, prefix="/practice", tags=["Practice"])
api_router.include_router(staff.router, prefix="/staff", tags=["Staff"])
api_router.include_router(patients.router, prefix="/patients", tags=["Patients"])
api_router.include_router(rooms.router, prefix="/rooms", tags=["Rooms"])
api_router.include_router(appointments.router, prefix="/appointments", tags=["Appointments"])
api_router.include_router(invoices.router, prefix="/invoices", tags=["Invoices"])
api_router.include_router(
    form_templates.router, prefix="/form-templates", tags=["Form Templates"]
)
