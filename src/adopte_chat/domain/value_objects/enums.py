from __future__ import annotations

from enum import StrEnum


class Role(StrEnum):
    STUDENT = "STUDENT"
    COMPANY = "COMPANY"
    ADMIN = "ADMIN"


class ConversationContext(StrEnum):
    ADOPTION_REQUEST = "ADOPTION_REQUEST"
    OFFER = "OFFER"
    BROADCAST = "BROADCAST"
    ADMIN_MESSAGE = "ADMIN_MESSAGE"


class ConversationStatus(StrEnum):
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"
    EXPIRED = "EXPIRED"


class BroadcastTarget(StrEnum):
    ALL = "ALL"
    STUDENTS = "STUDENTS"
    COMPANIES = "COMPANIES"
