# petloc/api/products/schemas.py
from marshmallow import Schema, fields, validate, validates, ValidationError

from petloc.models.product import PRODUCT_CATEGORIES, DEFAULT_PRODUCT_CATEGORY
from .services import parse_price

REQUIRED_MESSAGE = {"required": "Preencha todos os campos obrigatórios"}


class ProductCreateSchema(Schema):
    """POST /api/products/ 상품 등록 요청 스키마. price는 '12,50' 같은 문자열도 허용합니다."""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=100), error_messages=REQUIRED_MESSAGE)
    description = fields.Str(required=True, validate=validate.Length(min=1, max=2000), error_messages=REQUIRED_MESSAGE)
    price = fields.Raw(required=True, error_messages=REQUIRED_MESSAGE)
    contact = fields.Str(required=True, validate=validate.Length(min=1, max=120), error_messages=REQUIRED_MESSAGE)
    category = fields.Str(load_default=DEFAULT_PRODUCT_CATEGORY, validate=validate.OneOf(PRODUCT_CATEGORIES))
    stock = fields.Int(load_default=None, allow_none=True, validate=validate.Range(min=0))
    image_base64 = fields.Str(required=False, allow_none=True)

    @validates('price')
    def validate_price(self, value, **kwargs):
        try:
            parse_price(value)
        except ValueError as e:
            raise ValidationError(str(e))


class PurchaseQuoteSchema(Schema):
    quantity = fields.Int(load_default=1, validate=validate.Range(min=1, error="Quantidade inválida"))


class ProductResponseSchema(Schema):
    product_id = fields.Str(dump_only=True)
    owner_id = fields.Str(dump_only=True)
    name = fields.Str()
    description = fields.Str()
    price = fields.Str()
    unit_price = fields.Float(allow_none=True)
    contact = fields.Str()
    whatsapp_url = fields.Str(allow_none=True)
    category = fields.Str()
    stock = fields.Int(allow_none=True)
    sold_out = fields.Bool()
    can_purchase = fields.Bool()
    image_base64 = fields.Str(allow_none=True)
    active = fields.Bool()
    created_at = fields.DateTime(allow_none=True)
    updated_at = fields.DateTime(allow_none=True)


class PurchaseQuoteResponseSchema(Schema):
    product_id = fields.Str()
    name = fields.Str()
    quantity = fields.Int()
    unit_price = fields.Float(allow_none=True)
    total = fields.Str()
