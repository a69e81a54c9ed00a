# petloc/api/pets/schemas.py
from marshmallow import Schema, fields, validate

REQUIRED_MESSAGE = {"required": "Preencha todos os campos obrigatórios"}


class PetCreateSchema(Schema):
    """POST /api/pets/ 반려동물 등록 요청 스키마."""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=60), error_messages=REQUIRED_MESSAGE)
    description = fields.Str(required=True, validate=validate.Length(min=1, max=2000), error_messages=REQUIRED_MESSAGE)
    contact = fields.Str(required=True, validate=validate.Length(min=1, max=120), error_messages=REQUIRED_MESSAGE)
    image_base64 = fields.Str(required=False, allow_none=True)


class PetUpdateSchema(Schema):
    """PATCH /api/pets/<pet_id> 부분 업데이트용 스키마."""
    name = fields.Str(validate=validate.Length(min=1, max=60))
    description = fields.Str(validate=validate.Length(min=1, max=2000))
    contact = fields.Str(validate=validate.Length(min=1, max=120))
    image_base64 = fields.Str(allow_none=True)


class PetResponseSchema(Schema):
    pet_id = fields.Str(dump_only=True)
    owner_id = fields.Str(dump_only=True)
    name = fields.Str()
    description = fields.Str()
    contact = fields.Str()
    image_base64 = fields.Str(allow_none=True)
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)
