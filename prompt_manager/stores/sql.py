# -*- coding: utf-8 -*-
"""
Flask-SQLAlchemy implementations of the store interfaces.

Each mutating call commits its own unit of work and rolls the session back
before re-raising on failure. Nothing is retried here.
"""
from typing import List, Mapping, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from prompt_manager.errors import ConflictError, NotFoundError
from prompt_manager.infra.log import get_logger
from prompt_manager.models import Customer, Prompt
from prompt_manager.records import (
    CustomerPatch,
    CustomerRecord,
    PromptFields,
    PromptRecord,
    utcnow,
)
from prompt_manager.stores.base import CustomerStore, PromptStore, require_text

logger = get_logger('prompt_manager.stores')

# CustomerPatch attribute -> Customer column attribute
_CUSTOMER_COLUMNS = {
    "membership": "membership",
    "external_customer_ref": "stripe_customer_id",
    "external_subscription_ref": "stripe_subscription_id",
}


def _apply_patch(row: Customer, patch: CustomerPatch) -> None:
    for key, value in patch.changes().items():
        setattr(row, _CUSTOMER_COLUMNS[key], value)
    row.updated_at = utcnow()


class SqlCustomerStore(CustomerStore):

    def __init__(self, db):
        self._db = db

    @property
    def session(self):
        return self._db.session

    def create(self, customer: CustomerRecord) -> CustomerRecord:
        if self.session.get(Customer, customer.identity) is not None:
            raise ConflictError(f"Customer {customer.identity} already exists")

        now = utcnow()
        row = Customer(
            user_id=customer.identity,
            membership=customer.membership,
            stripe_customer_id=customer.external_customer_ref,
            stripe_subscription_id=customer.external_subscription_ref,
            created_at=customer.created_at or now,
            updated_at=now,
        )
        self.session.add(row)
        try:
            self.session.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent insert for the same identity.
            self.session.rollback()
            raise ConflictError(f"Customer {customer.identity} already exists") from exc
        except SQLAlchemyError:
            self.session.rollback()
            raise

        logger.info(f"Created customer {customer.identity}", membership=row.membership.value)
        return row.to_record()

    def get_by_identity(self, identity: str) -> Optional[CustomerRecord]:
        row = self.session.execute(
            select(Customer).where(Customer.user_id == identity)
        ).scalar_one_or_none()
        return row.to_record() if row is not None else None

    def update_by_identity(self, identity: str, patch: CustomerPatch) -> CustomerRecord:
        row = self.session.get(Customer, identity)
        if row is None:
            raise NotFoundError("Customer not found")

        _apply_patch(row, patch)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return row.to_record()

    def update_by_external_customer_ref(
            self, external_customer_ref: str, patch: CustomerPatch) -> Optional[CustomerRecord]:
        rows = self.session.execute(
            select(Customer)
            .where(Customer.stripe_customer_id == external_customer_ref)
            .order_by(Customer.created_at)
        ).scalars().all()
        if not rows:
            return None

        for row in rows:
            _apply_patch(row, patch)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise

        if len(rows) > 1:
            logger.warning(
                f"Stripe customer {external_customer_ref} is linked to {len(rows)} customers",
                identities=[row.user_id for row in rows])
        return rows[0].to_record()


class SqlPromptStore(PromptStore):

    def __init__(self, db):
        self._db = db

    @property
    def session(self):
        return self._db.session

    def list(self, owner: str) -> List[PromptRecord]:
        rows = self.session.execute(
            select(Prompt)
            .where(Prompt.user_id == owner)
            .order_by(Prompt.created_at.desc(), Prompt.id.desc())
        ).scalars().all()
        return [row.to_record() for row in rows]

    def create(self, owner: str, name: str, description: str, content: str) -> PromptRecord:
        require_text(name=name, description=description, content=content)
        now = utcnow()
        row = Prompt(
            user_id=owner,
            name=name,
            description=description,
            content=content,
            created_at=now,
            updated_at=now,
        )
        self.session.add(row)
        try:
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return row.to_record()

    def update(self, owner: str, prompt_id: int, fields: Mapping[str, str]) -> PromptRecord:
        values = PromptFields.from_mapping(fields).values
        values["updated_at"] = utcnow()
        try:
            # Ownership is part of the statement, so a non-owner never matches.
            result = self.session.execute(
                update(Prompt)
                .where(Prompt.id == prompt_id, Prompt.user_id == owner)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.session.rollback()
                raise NotFoundError("Prompt not found")

            row = self.session.execute(
                select(Prompt)
                .where(Prompt.id == prompt_id)
                .execution_options(populate_existing=True)
            ).scalar_one()
            record = row.to_record()
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return record

    def delete(self, owner: str, prompt_id: int) -> PromptRecord:
        try:
            row = self.session.execute(
                select(Prompt).where(Prompt.id == prompt_id, Prompt.user_id == owner)
            ).scalar_one_or_none()
            if row is None:
                raise NotFoundError("Prompt not found")
            record = row.to_record()

            result = self.session.execute(
                delete(Prompt)
                .where(Prompt.id == prompt_id, Prompt.user_id == owner)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                # Deleted concurrently between the read and the delete.
                self.session.rollback()
                raise NotFoundError("Prompt not found")
            self.session.expunge(row)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return record
