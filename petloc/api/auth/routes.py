# petloc/api/auth/routes.py

import logging
import jwt
from flask import Blueprint, request, jsonify, current_app
from flask_jwt_extended import (
    create_access_token,
    create_refresh_token,
    jwt_required,
    get_jwt_identity,
    get_jwt,
)
from firebase_admin import auth as firebase_auth
from marshmallow import ValidationError

from petloc.api.auth.schemas import (
    SessionLoginSchema,
    RegisterSchema,
    LogoutRequestSchema,
    UserProfileResponseSchema,
    SessionResponseSchema,
)
from petloc.core.session import session_required
from petloc.services.firebase_auth_service import FirebaseAuthService

auth_bp = Blueprint('auth_bp', __name__)


def _issue_tokens(uid: str, email, name, picture=None) -> dict:
    claims = {"email": email, "name": name, "picture": picture}
    return {
        "access_token": create_access_token(identity=uid, additional_claims=claims),
        "refresh_token": create_refresh_token(identity=uid, additional_claims=claims),
    }


@auth_bp.route('/session', methods=['POST'])
def start_session():
    """Firebase ID Token으로 로그인하고, 프로필(없으면 생성)과 역할을 해석합니다."""
    auth_service = current_app.services['auth']
    try:
        data = SessionLoginSchema().load(request.get_json(silent=True) or {})
        identity = FirebaseAuthService.verify_id_token(data['id_token'])
        if not identity:
            return jsonify({"error_code": "INVALID_ID_TOKEN", "message": "Sessão inválida ou expirada. Faça login novamente."}), 401

        session, profile, is_new_user = auth_service.resolve_session(
            identity['uid'], identity.get('email'), identity.get('name'), identity.get('picture')
        )
        tokens = _issue_tokens(session.uid, session.email, session.display_name, session.photo_url)
        return jsonify({
            **tokens,
            "is_new_user": is_new_user,
            "session": SessionResponseSchema().dump(session),
            "user": UserProfileResponseSchema().dump(profile.to_dict()) if profile else None,
        }), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except Exception as e:
        logging.error(f"세션 시작 중 예외 발생: {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Erro ao iniciar sessão."}), 500


@auth_bp.route('/register', methods=['POST'])
def register():
    """이메일/비밀번호 계정 생성 + users/{uid} 프로필 생성."""
    auth_service = current_app.services['auth']
    try:
        data = RegisterSchema().load(request.get_json(silent=True) or {})
        account = FirebaseAuthService.create_account(data['email'], data['password'], data['name'].strip())
        profile = auth_service.create_profile(account['uid'], account['email'], data['name'].strip())

        tokens = _issue_tokens(profile.user_id, profile.email, profile.display_name)
        return jsonify({
            **tokens,
            "is_new_user": True,
            "user": UserProfileResponseSchema().dump(profile.to_dict()),
        }), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except firebase_auth.EmailAlreadyExistsError:
        return jsonify({"error_code": "EMAIL_ALREADY_IN_USE", "message": "Este email já está em uso."}), 409
    except ValueError as e:
        # SDK가 거부한 이메일/비밀번호 형식
        return jsonify({"error_code": "INVALID_CREDENTIALS", "message": str(e)}), 400
    except Exception as e:
        logging.error(f"회원가입 처리 중 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "REGISTRATION_FAILED", "message": "Erro ao criar conta."}), 500


@auth_bp.route('/me', methods=['GET'])
@session_required()
def get_me(session):
    """현재 세션과 프로필 정보를 반환합니다."""
    auth_service = current_app.services['auth']
    profile = auth_service.get_profile(session.uid)
    return jsonify({
        "session": SessionResponseSchema().dump(session),
        "user": UserProfileResponseSchema().dump(profile.to_dict()) if profile else None,
    }), 200


# --- 토큰 재발급 엔드포인트 ---
@auth_bp.route('/token/refresh', methods=['POST'])
@jwt_required(refresh=True)
def refresh_token():
    """유효한 Refresh Token으로 새로운 Access Token을 발급합니다."""
    claims = get_jwt()
    new_access_token = create_access_token(
        identity=get_jwt_identity(),
        additional_claims={k: claims.get(k) for k in ('email', 'name', 'picture')}
    )
    return jsonify(access_token=new_access_token), 200


# --- 로그아웃 엔드포인트 ---
@auth_bp.route('/logout', methods=['POST'])
def logout():
    """로그아웃. 전달받은 Access/Refresh 토큰을 무효화 목록에 추가합니다."""
    auth_service = current_app.services['auth']
    try:
        data = LogoutRequestSchema().load(request.get_json(silent=True) or {})
        secret_key = current_app.config['JWT_SECRET_KEY']
        algorithm = current_app.config.get('JWT_ALGORITHM', 'HS256')

        # 만료된 토큰도 해독할 수 있도록 서명만 검증하고 만료는 무시합니다.
        decoded_access = jwt.decode(data['access_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})
        decoded_refresh = jwt.decode(data['refresh_token'], secret_key, algorithms=[algorithm], options={"verify_exp": False})

        auth_service.logout_user(decoded_access['jti'], decoded_access['exp'],
                                 decoded_refresh['jti'], decoded_refresh['exp'])
        return jsonify({"message": "Sessão encerrada."}), 200

    except ValidationError as e:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": e.messages}), 400
    except jwt.PyJWTError as e:
        logging.error(f"JWT 해독 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "INVALID_TOKEN", "message": "Token inválido."}), 422
    except Exception as e:
        logging.error(f"로그아웃 처리 중 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "LOGOUT_FAILED", "message": "Erro ao encerrar sessão."}), 500
