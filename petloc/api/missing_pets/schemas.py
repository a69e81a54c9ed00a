# petloc/api/missing_pets/schemas.py
from marshmallow import Schema, fields, validate

REQUIRED_MESSAGE = {"required": "Preencha todos os campos obrigatórios"}


class MissingPetCreateSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=60), error_messages=REQUIRED_MESSAGE)
    description = fields.Str(required=True, validate=validate.Length(min=1, max=2000), error_messages=REQUIRED_MESSAGE)
    contact = fields.Str(required=True, validate=validate.Length(min=1, max=120), error_messages=REQUIRED_MESSAGE)
    image_base64 = fields.Str(required=False, allow_none=True)


class FoundStatusSchema(Schema):
    """PATCH /api/missing-pets/<id>/found (관리자 전용)"""
    found = fields.Bool(required=True)


class MissingPetResponseSchema(Schema):
    report_id = fields.Str(dump_only=True)
    owner_id = fields.Str(dump_only=True)
    owner_email = fields.Str(dump_only=True)
    name = fields.Str()
    description = fields.Str()
    contact = fields.Str()
    whatsapp_url = fields.Str(allow_none=True)
    image_base64 = fields.Str(allow_none=True)
    found = fields.Bool()
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)
