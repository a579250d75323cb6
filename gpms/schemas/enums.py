"""Enumerations shared by models, schemas and services."""

from enum import Enum


class AppointmentStatus(str, Enum):
    """Appointment status enumeration."""

    BOOKED = "BOOKED"
    CONFIRMED = "CONFIRMED"
    ARRIVED = "ARRIVED"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    DNA = "DNA"  # Did Not Attend


class AppointmentType(str, Enum):
    """Appointment type enumeration."""

    GP_CONSULTATION = "GP_CONSULTATION"
    GP_EXTENDED = "GP_EXTENDED"
    GP_TELEPHONE = "GP_TELEPHONE"
    GP_VIDEO = "GP_VIDEO"
    NURSE_APPOINTMENT = "NURSE_APPOINTMENT"
    NURSE_CHRONIC_DISEASE = "NURSE_CHRONIC_DISEASE"
    HCA_BLOOD_TEST = "HCA_BLOOD_TEST"
    HCA_HEALTH_CHECK = "HCA_HEALTH_CHECK"
    VACCINATION = "VACCINATION"
    SMEAR_TEST = "SMEAR_TEST"
    MINOR_SURGERY = "MINOR_SURGERY"
    HOME_VISIT = "HOME_VISIT"


class UserRole(str, Enum):
    """Staff role enumeration."""

    SUPER_ADMIN = "SUPER_ADMIN"
    PRACTICE_ADMIN = "PRACTICE_ADMIN"
    GP = "GP"
    NURSE = "NURSE"
    HCA = "HCA"  # Healthcare Assistant
    RECEPTIONIST = "RECEPTIONIST"
    PRACTICE_MANAGER = "PRACTICE_MANAGER"


class PatientStatus(str, Enum):
    """Patient registration status enumeration."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DECEASED = "DECEASED"
    TRANSFERRED = "TRANSFERRED"


class Gender(str, Enum):
    """Gender enumeration."""

    MALE = "MALE"
    FEMALE = "FEMALE"
    OTHER = "OTHER"
    PREFER_NOT_TO_SAY = "PREFER_NOT_TO_SAY"


class InvoiceStatus(str, Enum):
    """Invoice status enumeration."""

    PENDING = "PENDING"
    PAID = "PAID"
    OVERDUE = "OVERDUE"
    CANCELLED = "CANCELLED"


class PaymentMethod(str, Enum):
    """How an invoice is settled."""

    CASH = "CASH"
    CARD = "CARD"
    BANK_TRANSFER = "BANK_TRANSFER"
    CHEQUE = "CHEQUE"
    INSURANCE = "INSURANCE"


class FormTemplateCategory(str, Enum):
    """Form template category enumeration."""

    INTAKE = "INTAKE"
    ASSESSMENT = "ASSESSMENT"
    CONSENT = "CONSENT"
    QUESTIONNAIRE = "QUESTIONNAIRE"
    CUSTOM = "CUSTOM"


class FormTemplateStatus(str, Enum):
    """Form template publication status."""

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


def enum_values_sql(enum_cls: type[Enum]) -> str:
    """Render enum values as a SQL IN list for check constraints."""
    return ", ".join(f"'{member.value}'" for member in enum_cls)


# Roles that can hold a clinical appointment list
CLINICAL_ROLES = (UserRole.GP, UserRole.NURSE, UserRole.HCA)
