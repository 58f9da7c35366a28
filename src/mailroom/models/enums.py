"""String enums for mailroom API values."""

from enum import StrEnum


class PlanType(StrEnum):
    TRIAL = "trial"
    STARTER = "starter"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"


class SubscriptionStatus(StrEnum):
    TRIAL = "trial"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"


class MemberRole(StrEnum):
    ADMIN = "admin"
    MEMBER = "member"


class BillingCycle(StrEnum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class RecipientType(StrEnum):
    GUEST = "guest"
    EMPLOYEE = "employee"
    RESIDENT = "resident"


class MailItemType(StrEnum):
    PACKAGE = "package"
    LETTER = "letter"
    CERTIFIED_MAIL = "certified_mail"
    EXPRESS = "express"


class MailItemStatus(StrEnum):
    PENDING = "pending"
    NOTIFIED = "notified"
    DELIVERED = "delivered"


class MailItemAction(StrEnum):
    NOTIFY = "notify"
    DELIVER = "deliver"


class IntegrationType(StrEnum):
    EMAIL = "email"
    SMS = "sms"
    WEBHOOK = "webhook"
    API = "api"


class LocationType(StrEnum):
    BIN = "bin"
    SHELF = "shelf"
    LOCKER = "locker"
    COLD_STORAGE = "cold_storage"


class ImageFormat(StrEnum):
    JPEG = "jpeg"
    WEBP = "webp"
