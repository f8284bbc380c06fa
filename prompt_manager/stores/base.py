# -*- coding: utf-8 -*-
from abc import ABC, abstractmethod
from typing import List, Mapping, Optional

from prompt_manager.records import CustomerPatch, CustomerRecord, PromptRecord


class CustomerStore(ABC):
    """Durable mapping from caller identity to billing/membership state."""

    @abstractmethod
    def create(self, customer: CustomerRecord) -> CustomerRecord:
        """Insert a new customer. Raises ConflictError if the identity exists."""

    @abstractmethod
    def get_by_identity(self, identity: str) -> Optional[CustomerRecord]:
        """Return the customer for ``identity`` or None."""

    @abstractmethod
    def update_by_identity(self, identity: str, patch: CustomerPatch) -> CustomerRecord:
        """Apply ``patch``. Raises NotFoundError if no customer matches."""

    @abstractmethod
    def update_by_external_customer_ref(
            self, external_customer_ref: str, patch: CustomerPatch) -> Optional[CustomerRecord]:
        """
        Apply ``patch`` to the customer holding ``external_customer_ref``.

        Returns None and writes nothing when no customer matches. Webhooks
        may reference a customer whose checkout has not been processed yet.
        """


class PromptStore(ABC):
    """Durable prompt storage; every operation is scoped to an owner."""

    @abstractmethod
    def list(self, owner: str) -> List[PromptRecord]:
        """Return the owner's prompts, newest first."""

    @abstractmethod
    def create(self, owner: str, name: str, description: str, content: str) -> PromptRecord:
        """Insert a prompt for ``owner``."""

    @abstractmethod
    def update(self, owner: str, prompt_id: int, fields: Mapping[str, str]) -> PromptRecord:
        """Update a prompt. Raises NotFoundError unless ``owner`` owns ``prompt_id``."""

    @abstractmethod
    def delete(self, owner: str, prompt_id: int) -> PromptRecord:
        """Delete and return a prompt. Raises NotFoundError unless owned."""


def require_text(**values) -> None:
    nulls = [name for name, value in values.items() if value is None]
    if nulls:
        raise ValueError(f"Prompt fields cannot be null: {', '.join(sorted(nulls))}")
