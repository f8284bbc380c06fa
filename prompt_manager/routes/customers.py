# -*- coding: utf-8 -*-
"""
Membership lookup for the signed-in caller.
"""
from flask import Blueprint, jsonify

from prompt_manager.extensions import get_services
from prompt_manager.infra.auth import current_identity, require_identity
from prompt_manager.records import Membership
from prompt_manager.schemas.billing import MembershipSchema

customers_bp = Blueprint('customers', __name__, url_prefix='/api/customers')


@customers_bp.route('/me', methods=['GET'])
@require_identity
def get_membership():
    """Return the caller's membership; callers without a customer row are free."""
    identity = current_identity()
    customer = get_services().customer_store.get_by_identity(identity)
    return jsonify(MembershipSchema().dump({
        'identity': identity,
        'membership': (customer.membership if customer else Membership.FREE).value,
        'has_subscription': bool(customer and customer.external_subscription_ref),
        'updated_at': customer.updated_at if customer else None,
    })), 200
