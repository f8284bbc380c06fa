# -*- coding: utf-8 -*-
# prompt_manager/models/customer.py
from prompt_manager.infra.db import db
from prompt_manager.records import CustomerRecord, Membership, utcnow


class Customer(db.Model):
    __tablename__ = 'customers'

    user_id = db.Column(db.String(255), primary_key=True)
    membership = db.Column(
        db.Enum(
            Membership,
            name='membership',
            values_callable=lambda enum: [member.value for member in enum],
            create_constraint=True,
            validate_strings=True,
        ),
        nullable=False,
        default=Membership.FREE,
    )
    # Not unique: webhook deliveries may race the checkout upsert.
    stripe_customer_id = db.Column(db.String(255), nullable=True, index=True)
    stripe_subscription_id = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_record(self) -> CustomerRecord:
        return CustomerRecord(
            identity=self.user_id,
            membership=Membership(self.membership),
            external_customer_ref=self.stripe_customer_id,
            external_subscription_ref=self.stripe_subscription_id,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    def __repr__(self):
        return f"<Customer {self.user_id} {self.membership}>"
