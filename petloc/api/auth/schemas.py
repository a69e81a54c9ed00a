# petloc/api/auth/schemas.py
from marshmallow import Schema, fields, validate, validates_schema, ValidationError


class SessionLoginSchema(Schema):
    """POST /api/auth/session: Firebase Auth 로그인 후 받은 ID Token."""
    id_token = fields.Str(required=True, error_messages={"required": "id_token é obrigatório."})


class RegisterSchema(Schema):
    """POST /api/auth/register: 이메일/비밀번호 회원가입 요청."""
    name = fields.Str(required=True, validate=validate.Length(min=1, max=80))
    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True,
                          validate=validate.Length(min=6, error="A senha deve ter pelo menos 6 caracteres"))
    confirm_password = fields.Str(required=True, load_only=True)

    @validates_schema
    def validate_passwords_match(self, data, **kwargs):
        if data.get('password') != data.get('confirm_password'):
            raise ValidationError("As senhas não coincidem", field_name="confirm_password")


class LogoutRequestSchema(Schema):
    """로그아웃 요청의 유효성을 검사하는 스키마"""
    access_token = fields.Str(required=True)
    refresh_token = fields.Str(required=True)


class UserProfileResponseSchema(Schema):
    user_id = fields.Str(dump_only=True)
    email = fields.Str(allow_none=True)
    display_name = fields.Str()
    role = fields.Method('get_role')
    created_at = fields.DateTime()
    updated_at = fields.DateTime()

    def get_role(self, obj):
        role = obj.get('role') if isinstance(obj, dict) else obj.role
        return getattr(role, 'value', role)


class SessionResponseSchema(Schema):
    uid = fields.Str()
    email = fields.Str(allow_none=True)
    display_name = fields.Str()
    role = fields.Function(lambda session: session.role.value)
    is_admin = fields.Bool()
