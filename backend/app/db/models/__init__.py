from __future__ import annotations

"""
ORM models grouped by department:
- auth: users
- audit: audit_log
- admin: departments / staff / salaries / contractors / vehicles
- amc: equipments / providers / contracts
- hr: designations / technical groups / employees and their service records
- mmg: procurements / items / history / bids / purchase orders
- finance: projects / budget fields / budget entries / expenditures / grants
- business: clients / entities / purchase orders / payments
- edoffice: travels / talks / calendar events
- technical: patents / proposals / publications / events / project status
- acts: ACTS courses / manpower counts
- notifications: expiry notifications
"""

from .acts import ActsCourse, ManpowerCount  # noqa: F401
from .admin import (  # noqa: F401
    Contractor,
    ContractorMapping,
    Department,
    Salary,
    Staff,
    Vehicle,
    VehicleInsurance,
    VehicleServicing,
)
from .amc import AmcContract, AmcProvider, Equipment  # noqa: F401
from .audit import AuditLog  # noqa: F401
from .auth import User  # noqa: F401
from .business import (  # noqa: F401
    BusinessEntity,
    BusinessPurchaseOrder,
    Client,
    EntityPayment,
    PoStatusHistory,
)
from .edoffice import CalendarEvent, Talk, Travel  # noqa: F401
from .finance import (  # noqa: F401
    BudgetEntry,
    BudgetField,
    Expenditure,
    FinanceProject,
    GrantReceived,
    ProjectBudgetFieldMapping,
)
from .hr import (  # noqa: F401
    Attrition,
    ContractRenewal,
    Designation,
    Employee,
    Promotion,
    Recruitment,
    TechnicalGroup,
    Training,
    Transfer,
)
from .mmg import (  # noqa: F401
    Bid,
    MmgPurchaseOrder,
    Procurement,
    ProcurementHistory,
    ProcurementItem,
)
from .notifications import Notification  # noqa: F401
from .technical import (  # noqa: F401
    Patent,
    PatentInventor,
    PatentStatusHistory,
    ProjectEvent,
    ProjectPublication,
    ProjectStatus,
    ProjectStatusHistory,
    Proposal,
    ProposalEmployee,
    ProposalStatusHistory,
)
