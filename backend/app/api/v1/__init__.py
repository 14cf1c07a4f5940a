from fastapi import APIRouter

from app.api.v1 import (
    acts,
    acts_dashboard,
    admin_contractors,
    admin_dashboard,
    admin_staff,
    admin_vehicles,
    amc,
    auth,
    business,
    business_dashboard,
    calendar_events,
    edoffice_dashboard,
    finance,
    finance_dashboard,
    hr,
    hr_dashboard,
    hr_services,
    manpower,
    mmg,
    mmg_dashboard,
    notifications,
    patents,
    project_events,
    project_publications,
    project_status,
    proposals,
    talks,
    technical_dashboard,
    travels,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["auth"])

# Admin and facilities
router.include_router(admin_staff.router, prefix="/admin", tags=["admin"])
router.include_router(admin_contractors.router, prefix="/admin", tags=["admin"])
router.include_router(admin_vehicles.router, prefix="/admin", tags=["admin"])
router.include_router(admin_dashboard.router, prefix="/admin/dashboard", tags=["admin"])
router.include_router(amc.router, prefix="/amc", tags=["amc"])

# HR
router.include_router(hr_services.router, prefix="/hr/services", tags=["hr"])
router.include_router(hr_dashboard.router, prefix="/hr/dashboard", tags=["hr"])
router.include_router(hr.router, prefix="/hr", tags=["hr"])
router.include_router(hr.groups_router, prefix="/technical-groups", tags=["hr"])

# MMG procurement and finance
router.include_router(mmg_dashboard.router, prefix="/mmg/dashboard", tags=["mmg"])
router.include_router(mmg.router, prefix="/mmg", tags=["mmg"])
router.include_router(finance_dashboard.router, prefix="/finance/dashboard", tags=["finance"])
router.include_router(finance.router, prefix="/finance", tags=["finance"])

# Business development
router.include_router(business_dashboard.router, prefix="/business/dashboard", tags=["business"])
router.include_router(business.router, prefix="/business", tags=["business"])

# ED office
router.include_router(travels.router, prefix="/travels", tags=["edoffice"])
router.include_router(talks.router, prefix="/talks", tags=["edoffice"])
router.include_router(calendar_events.router, prefix="/calendar-events", tags=["edoffice"])
router.include_router(edoffice_dashboard.router, prefix="/edoffice/dashboard", tags=["edoffice"])

# Technical projects
router.include_router(patents.router, prefix="/patents", tags=["technical"])
router.include_router(proposals.router, prefix="/proposals", tags=["technical"])
router.include_router(project_publications.router, prefix="/project-publications", tags=["technical"])
router.include_router(project_events.router, prefix="/project-events", tags=["technical"])
router.include_router(project_status.router, prefix="/project-status", tags=["technical"])
router.include_router(technical_dashboard.router, prefix="/technical/dashboard", tags=["technical"])

# ACTS, manpower and notifications
router.include_router(acts.router, prefix="/acts", tags=["acts"])
router.include_router(acts_dashboard.router, prefix="/acts/dashboard", tags=["acts"])
router.include_router(manpower.router, prefix="/manpower", tags=["acts"])
router.include_router(notifications.router, prefix="/notifications", tags=["notifications"])
