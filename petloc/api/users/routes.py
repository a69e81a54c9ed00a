# petloc/api/users/routes.py
from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError
from google.api_core.exceptions import GoogleAPICallError

from petloc.api.auth.schemas import UserProfileResponseSchema
from petloc.core.errors import backend_error_response
from petloc.core.session import session_required
from .schemas import RoleUpdateSchema

users_bp = Blueprint('users_bp', __name__)


@users_bp.route('/', methods=['GET'])
@session_required(admin=True)
def list_users(session):
    """[관리자] 사용자 목록. ?search=이름 또는 이메일"""
    user_service = current_app.services['users']
    try:
        users = user_service.list_users(session, request.args.get('search'))
        return jsonify(UserProfileResponseSchema(many=True).dump(users)), 200
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar usuários")


@users_bp.route('/<string:user_id>/role', methods=['PATCH'])
@session_required(admin=True)
def update_role(user_id: str, session):
    user_service = current_app.services['users']
    try:
        data = RoleUpdateSchema().load(request.get_json(silent=True) or {})
        return jsonify(UserProfileResponseSchema().dump(user_service.update_role(session, user_id, data['role']))), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except FileNotFoundError as e:
        return jsonify({"error_code": "USER_NOT_FOUND", "message": str(e)}), 404
    except GoogleAPICallError as e:
        return backend_error_response(e, "atualizar usuário")
