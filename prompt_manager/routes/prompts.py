# -*- coding: utf-8 -*-
"""
Prompt routes.

CRUD over the caller's own prompts. Every operation is scoped to the
identity from the bearer token; another user's prompt id yields the same
404 as a missing one.
"""
from flask import Blueprint, request, jsonify
from marshmallow import ValidationError

from prompt_manager.extensions import get_services
from prompt_manager.infra.auth import current_identity, require_identity
from prompt_manager.infra.log import get_logger
from prompt_manager.schemas.prompt import PromptCreateSchema, PromptSchema, PromptUpdateSchema
from prompt_manager.utils.dev_delay import dev_delay

logger = get_logger(__name__)
prompts_bp = Blueprint('prompts', __name__, url_prefix='/api/prompts')

prompt_schema = PromptSchema()
prompts_schema = PromptSchema(many=True)


def _validation_error(e: ValidationError):
    logger.warning(f"Invalid prompt request: {e.messages}")
    return jsonify({'error': 'validation_error', 'message': 'Invalid request data',
                    'details': e.messages}), 400


@prompts_bp.route('', methods=['GET'])
@require_identity
def list_prompts():
    """List the caller's prompts, newest first."""
    dev_delay()
    prompts = get_services().prompt_store.list(current_identity())
    return jsonify({'prompts': prompts_schema.dump(prompts)}), 200


@prompts_bp.route('', methods=['POST'])
@require_identity
def create_prompt():
    """
    Create a prompt.

    Request Body:
    - name: Name of the prompt
    - description: Short description of what the prompt does
    - content: The prompt text
    """
    try:
        data = PromptCreateSchema().load(request.get_json(silent=True) or {})
    except ValidationError as e:
        return _validation_error(e)

    dev_delay()
    identity = current_identity()
    prompt = get_services().prompt_store.create(
        identity, data['name'], data['description'], data['content'])
    logger.info(f"Prompt {prompt.id} created", prompt_id=prompt.id)
    return jsonify(prompt_schema.dump(prompt)), 201


@prompts_bp.route('/<int:prompt_id>', methods=['PUT', 'PATCH'])
@require_identity
def update_prompt(prompt_id: int):
    """Update a prompt. PUT requires every field, PATCH any subset."""
    try:
        data = PromptUpdateSchema().load(
            request.get_json(silent=True) or {},
            partial=(request.method == 'PATCH'))
    except ValidationError as e:
        return _validation_error(e)

    dev_delay()
    prompt = get_services().prompt_store.update(current_identity(), prompt_id, data)
    logger.info(f"Prompt {prompt_id} updated", prompt_id=prompt_id, fields=sorted(data))
    return jsonify(prompt_schema.dump(prompt)), 200


@prompts_bp.route('/<int:prompt_id>', methods=['DELETE'])
@require_identity
def delete_prompt(prompt_id: int):
    """Delete a prompt and return it."""
    dev_delay()
    prompt = get_services().prompt_store.delete(current_identity(), prompt_id)
    logger.info(f"Prompt {prompt_id} deleted", prompt_id=prompt_id)
    return jsonify(prompt_schema.dump(prompt)), 200
