# petloc/api/chat/schemas.py
from marshmallow import Schema, fields, validate

REQUIRED_MESSAGE = {"required": "Preencha todos os campos obrigatórios"}


class ChatGroupCreateSchema(Schema):
    name = fields.Str(required=True, validate=validate.Length(min=1, max=80), error_messages=REQUIRED_MESSAGE)
    description = fields.Str(required=True, validate=validate.Length(min=1, max=500), error_messages=REQUIRED_MESSAGE)
    category = fields.Str(validate=validate.Length(min=1, max=40))
    icon = fields.Str(validate=validate.Length(max=8))


class ChatGroupUpdateSchema(Schema):
    name = fields.Str(validate=validate.Length(min=1, max=80))
    description = fields.Str(validate=validate.Length(min=1, max=500))
    category = fields.Str(validate=validate.Length(min=1, max=40))
    icon = fields.Str(validate=validate.Length(max=8))


class MessageCreateSchema(Schema):
    text = fields.Str(required=True, validate=validate.Length(max=2000),
                      error_messages={"required": "A mensagem não pode estar vazia."})


class ChatGroupResponseSchema(Schema):
    group_id = fields.Str(dump_only=True)
    name = fields.Str()
    description = fields.Str()
    category = fields.Str()
    icon = fields.Str()
    creator_id = fields.Str()
    creator_name = fields.Str()
    member_count = fields.Int()
    is_member = fields.Bool()
    last_message = fields.Str()
    last_message_at = fields.DateTime(allow_none=True)
    active = fields.Bool()
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)


class ChatMessageResponseSchema(Schema):
    message_id = fields.Str(dump_only=True)
    text = fields.Str()
    sender_id = fields.Str()
    sender_name = fields.Str()
    sender_photo_url = fields.Str(allow_none=True)
    sent_at = fields.DateTime(allow_none=True)


class MessageDaySectionSchema(Schema):
    """날짜 구분선 단위로 묶인 메시지 (label: Hoje / Ontem / dd/mm/yyyy)."""
    label = fields.Str()
    date = fields.Date()
    messages = fields.List(fields.Nested(ChatMessageResponseSchema))
