# prompt_manager/schemas/billing.py
from marshmallow import Schema, fields, validate, EXCLUDE


class CheckoutSessionRequestSchema(Schema):
    """Schema for checkout session request validation."""
    price_id = fields.Str(
        load_default=None,
        validate=validate.Regexp(r'^price_', error='Must be a Stripe price id (price_...).'))
    success_url = fields.Url(load_default=None, require_tld=False)
    cancel_url = fields.Url(load_default=None, require_tld=False)

    class Meta:
        unknown = EXCLUDE


class MembershipSchema(Schema):
    identity = fields.Str(dump_only=True)
    membership = fields.Str(dump_only=True)
    has_subscription = fields.Bool(dump_only=True)
    updated_at = fields.DateTime(dump_only=True, allow_none=True)
