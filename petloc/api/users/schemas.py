# petloc/api/users/schemas.py
from marshmallow import Schema, fields, validate

from petloc.models.user import UserRole


class RoleUpdateSchema(Schema):
    role = fields.Str(required=True, validate=validate.OneOf([r.value for r in UserRole]))
