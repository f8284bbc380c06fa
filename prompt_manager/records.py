# -*- coding: utf-8 -*-
"""
Immutable value objects returned by the stores.

Stores never hand live ORM rows to callers; they return these records so
business logic cannot mutate persisted state behind the store's back.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Membership(str, Enum):
    FREE = "free"
    PRO = "pro"


@dataclass(frozen=True)
class CustomerRecord:
    identity: str
    membership: Membership = Membership.FREE
    external_customer_ref: Optional[str] = None
    external_subscription_ref: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self):
        return {
            "identity": self.identity,
            "membership": self.membership.value,
            "external_customer_ref": self.external_customer_ref,
            "external_subscription_ref": self.external_subscription_ref,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


@dataclass(frozen=True)
class CustomerPatch:
    """Partial update for a customer. ``None`` means "leave unchanged"."""

    membership: Optional[Membership] = None
    external_customer_ref: Optional[str] = None
    external_subscription_ref: Optional[str] = None

    def changes(self) -> dict:
        values = {
            "membership": self.membership,
            "external_customer_ref": self.external_customer_ref,
            "external_subscription_ref": self.external_subscription_ref,
        }
        return {key: value for key, value in values.items() if value is not None}


@dataclass(frozen=True)
class PromptRecord:
    id: int
    owner: str
    name: str
    description: str
    content: str
    created_at: datetime
    updated_at: datetime


# Fields a caller may change on an existing prompt.
PROMPT_MUTABLE_FIELDS = frozenset({"name", "description", "content"})


@dataclass(frozen=True)
class PromptFields:
    """Validated subset of prompt fields for an update."""

    values: dict = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, fields) -> "PromptFields":
        unknown = set(fields) - PROMPT_MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown prompt fields: {', '.join(sorted(unknown))}")
        nulls = [name for name, value in fields.items() if value is None]
        if nulls:
            raise ValueError(f"Prompt fields cannot be null: {', '.join(sorted(nulls))}")
        return cls(values=dict(fields))
