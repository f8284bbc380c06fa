# -*- coding: utf-8 -*-
"""
In-memory store implementations.

Same contracts as the SQL stores; used by the test suite and handy for
running the reconciler without a database.
"""
import itertools
import threading
from dataclasses import replace
from typing import Dict, List, Mapping, Optional

from prompt_manager.errors import ConflictError, NotFoundError
from prompt_manager.records import (
    CustomerPatch,
    CustomerRecord,
    PromptFields,
    PromptRecord,
    utcnow,
)
from prompt_manager.stores.base import CustomerStore, PromptStore, require_text


class InMemoryCustomerStore(CustomerStore):

    def __init__(self):
        self._rows: Dict[str, CustomerRecord] = {}
        self._lock = threading.Lock()
        self.writes = 0

    def create(self, customer: CustomerRecord) -> CustomerRecord:
        with self._lock:
            if customer.identity in self._rows:
                raise ConflictError(f"Customer {customer.identity} already exists")
            now = utcnow()
            record = replace(customer, created_at=customer.created_at or now, updated_at=now)
            self._rows[customer.identity] = record
            self.writes += 1
            return record

    def get_by_identity(self, identity: str) -> Optional[CustomerRecord]:
        return self._rows.get(identity)

    def update_by_identity(self, identity: str, patch: CustomerPatch) -> CustomerRecord:
        with self._lock:
            current = self._rows.get(identity)
            if current is None:
                raise NotFoundError("Customer not found")
            updated = replace(current, updated_at=utcnow(), **patch.changes())
            self._rows[identity] = updated
            self.writes += 1
            return updated

    def update_by_external_customer_ref(
            self, external_customer_ref: str, patch: CustomerPatch) -> Optional[CustomerRecord]:
        with self._lock:
            matches = sorted(
                (row for row in self._rows.values()
                 if row.external_customer_ref == external_customer_ref),
                key=lambda row: row.created_at)
            if not matches:
                return None
            now = utcnow()
            updated = [replace(row, updated_at=now, **patch.changes()) for row in matches]
            for row in updated:
                self._rows[row.identity] = row
            self.writes += 1
            return updated[0]

    def all(self) -> List[CustomerRecord]:
        return list(self._rows.values())


class InMemoryPromptStore(PromptStore):

    def __init__(self):
        self._rows: Dict[int, PromptRecord] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def list(self, owner: str) -> List[PromptRecord]:
        rows = [row for row in self._rows.values() if row.owner == owner]
        return sorted(rows, key=lambda row: (row.created_at, row.id), reverse=True)

    def create(self, owner: str, name: str, description: str, content: str) -> PromptRecord:
        require_text(name=name, description=description, content=content)
        with self._lock:
            now = utcnow()
            record = PromptRecord(
                id=next(self._ids),
                owner=owner,
                name=name,
                description=description,
                content=content,
                created_at=now,
                updated_at=now,
            )
            self._rows[record.id] = record
            return record

    def _owned(self, owner: str, prompt_id: int) -> PromptRecord:
        row = self._rows.get(prompt_id)
        # Same error whether the id is missing or belongs to someone else.
        if row is None or row.owner != owner:
            raise NotFoundError("Prompt not found")
        return row

    def update(self, owner: str, prompt_id: int, fields: Mapping[str, str]) -> PromptRecord:
        values = PromptFields.from_mapping(fields).values
        with self._lock:
            row = self._owned(owner, prompt_id)
            updated = replace(row, updated_at=utcnow(), **values)
            self._rows[prompt_id] = updated
            return updated

    def delete(self, owner: str, prompt_id: int) -> PromptRecord:
        with self._lock:
            row = self._owned(owner, prompt_id)
            del self._rows[prompt_id]
            return row
