from __future__ import annotations

"""
Python enums of the domain model.

Stored as VARCHAR values (see app.db.base.str_enum) and reused by the
pydantic schemas, so the API accepts and returns the same strings.
"""

from enum import Enum


class Gender(str, Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"


class StaffStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class SalaryStatus(str, Enum):
    PAID = "PAID"
    PENDING = "PENDING"


class MappingStatus(str, Enum):
    UPCOMING = "UPCOMING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class AmcStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class EmployeeStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class TrainingType(str, Enum):
    TECHNICAL = "TECHNICAL"
    MENTAL_HEALTH = "MENTAL_HEALTH"
    SPECIAL_TECHNICAL_TRAINING = "SPECIAL_TECHNICAL_TRAINING"
    WORK_LIFE_BALANCE = "WORK_LIFE_BALANCE"


class RecruitmentMode(str, Enum):
    ACTS = "ACTS"
    OFF_CAMPUS = "OFF_CAMPUS"
    OPEN_AD = "OPEN_AD"


class SourcingMethod(str, Enum):
    TENDER = "TENDER"
    GEM = "GEM"


class ApproverRole(str, Enum):
    GROUP_HEAD = "Group Head"
    FINANCE = "Finance"
    ED = "ED"


class ApprovalDecision(str, Enum):
    APPROVED = "Approved"
    REJECTED = "Rejected"


class MmgPoStatus(str, Enum):
    PENDING = "Pending"
    PAYMENT_PROCESSED = "Payment Processed"


class TravelType(str, Enum):
    FOREIGN = "foreign"
    DOMESTIC = "domestic"


class TravelStatus(str, Enum):
    GOING = "going"
    NOT_GOING = "not_going"
    DEPUTING = "deputing"


class PatentStatus(str, Enum):
    FILED = "Filed"
    UNDER_REVIEW = "Under Review"
    GRANTED = "Granted"
    REJECTED = "Rejected"


class ProjectStatusValue(str, Enum):
    JUST_BOARDED = "Just Boarded"
    ONGOING = "Ongoing"
    COMPLETED = "Completed"
    ON_HOLD = "On Hold"


class BusinessEntityType(str, Enum):
    PROJECT = "project"
    SERVICE = "service"
    PRODUCT = "product"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"


class NotificationCategory(str, Enum):
    AMC_CONTRACT = "amc_contract"
    VEHICLE_INSURANCE = "vehicle_insurance"
    VEHICLE_SERVICE = "vehicle_service"
    CONTRACTOR_MAPPING = "contractor_mapping"
    EMPLOYEE_CONTRACT = "employee_contract"
