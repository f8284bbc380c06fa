# prompt_manager/schemas/prompt.py
from marshmallow import Schema, fields, validate, EXCLUDE


class PromptCreateSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=200))
    description = fields.Str(required=True, validate=validate.Length(min=1, max=1000))
    content = fields.Str(required=True, validate=validate.Length(min=1))

    class Meta:
        unknown = EXCLUDE


# PUT replaces every field; PATCH loads this schema with partial=True.
PromptUpdateSchema = PromptCreateSchema


class PromptSchema(Schema):
    id = fields.Int(dump_only=True)
    name = fields.Str(dump_only=True)
    description = fields.Str(dump_only=True)
    content = fields.Str(dump_only=True)
    created_at = fields.DateTime(dump_only=True)
    updated_at = fields.DateTime(dump_only=True)
