"""Enumerations shared by ledger, schedule and anticipation records."""

import enum


class Currency(enum.StrEnum):
    BRL = "BRL"
    USD = "USD"
    MXN = "MXN"


class AccountType(enum.StrEnum):
    BALANCE_AVAILABLE = "BALANCE_AVAILABLE"
    BALANCE_PENDING = "BALANCE_PENDING"
    BALANCE_RESERVE = "BALANCE_RESERVE"


class MovementType(enum.StrEnum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class OperationType(enum.StrEnum):
    PAYMENT = "PAYMENT"
    RESERVE = "RESERVE"
    RELEASE = "RELEASE"
    ANTICIPATION = "ANTICIPATION"
    REFUND = "REFUND"
    WITHDRAWAL = "WITHDRAWAL"
    FEE = "FEE"


class PaymentMethod(enum.StrEnum):
    PIX = "PIX"
    BILLET = "BILLET"
    CREDIT_CARD = "CREDIT_CARD"


class PaymentStatus(enum.StrEnum):
    APPROVED = "APPROVED"
    REFUNDED = "REFUNDED"


class ReleaseScheduleType(enum.StrEnum):
    INSTALLMENT = "INSTALLMENT"
    RESERVE_RELEASE = "RESERVE_RELEASE"
    PENDING_TO_AVAILABLE = "PENDING_TO_AVAILABLE"


class ReleaseScheduleStatus(enum.StrEnum):
    SCHEDULED = "SCHEDULED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class AnticipationStatus(enum.StrEnum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"


class QueueTaskType(enum.StrEnum):
    SCHEDULED = "SCHEDULED"
    ANTICIPATION = "ANTICIPATION"


class QueueTaskStatus(enum.StrEnum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class CompanyStatus(enum.StrEnum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    BLOCKED = "BLOCKED"


OPEN_ANTICIPATION_STATUSES = (
    AnticipationStatus.PENDING,
    AnticipationStatus.PROCESSING,
)

ANTICIPATABLE_SCHEDULE_TYPES = (
    ReleaseScheduleType.INSTALLMENT,
    ReleaseScheduleType.PENDING_TO_AVAILABLE,
)
