# petloc/api/news/schemas.py
from marshmallow import Schema, fields, validate


class NewsArticleResponseSchema(Schema):
    id = fields.Str()
    title = fields.Str()
    description = fields.Str()
    url = fields.Str()
    image_url = fields.Str()
    published_at = fields.DateTime()
    source = fields.Str()
    category = fields.Str()
    api_source = fields.Str()
    author = fields.Str()


class ManagedNewsArticleResponseSchema(NewsArticleResponseSchema):
    hidden = fields.Bool()


class HideArticleSchema(Schema):
    article_id = fields.Str(required=True, validate=validate.Length(min=1))
    title = fields.Str(load_default='')


class UnhideArticleSchema(Schema):
    article_id = fields.Str(required=True, validate=validate.Length(min=1))
