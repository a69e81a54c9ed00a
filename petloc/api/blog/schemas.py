# petloc/api/blog/schemas.py
from marshmallow import Schema, fields, validate

REQUIRED_MESSAGE = {"required": "Preencha todos os campos obrigatórios"}


class BlogPostCreateSchema(Schema):
    title = fields.Str(required=True, validate=validate.Length(min=1, max=200), error_messages=REQUIRED_MESSAGE)
    description = fields.Str(required=True, validate=validate.Length(min=1), error_messages=REQUIRED_MESSAGE)
    category = fields.Str(required=True, validate=validate.Length(min=1, max=60), error_messages=REQUIRED_MESSAGE)
    author = fields.Str(validate=validate.Length(min=1, max=100))
    icon = fields.Str(validate=validate.Length(max=8))
    read_time = fields.Str(validate=validate.Length(max=20))
    published_at = fields.DateTime()


class BlogPostUpdateSchema(Schema):
    title = fields.Str(validate=validate.Length(min=1, max=200))
    description = fields.Str(validate=validate.Length(min=1))
    category = fields.Str(validate=validate.Length(min=1, max=60))
    author = fields.Str(validate=validate.Length(min=1, max=100))
    icon = fields.Str(validate=validate.Length(max=8))
    read_time = fields.Str(validate=validate.Length(max=20))
    published_at = fields.DateTime()


class BlogPostResponseSchema(Schema):
    post_id = fields.Str(dump_only=True)
    title = fields.Str()
    description = fields.Str()
    author = fields.Str()
    category = fields.Str()
    icon = fields.Str()
    read_time = fields.Str()
    published_at = fields.DateTime(allow_none=True)
    active = fields.Bool()
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)
