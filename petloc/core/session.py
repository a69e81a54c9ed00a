# petloc/core/session.py
"""
요청 단위 세션(로그인 사용자 + 역할) 객체.

세션은 전역 컨텍스트에 두지 않고, session_required 데코레이터가 매 요청마다
해석하여 뷰 함수의 'session' 인자로 넘깁니다. 뷰는 이를 서비스 호출에 명시적으로 전달합니다.
"""

from dataclasses import dataclass
from functools import wraps
from typing import Optional
from flask import jsonify, current_app
from flask_jwt_extended import jwt_required, get_jwt_identity, get_jwt

from petloc.models.user import UserRole


@dataclass(frozen=True)
class Session:
    uid: str
    email: Optional[str]
    display_name: str
    role: UserRole = UserRole.USER
    photo_url: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    def ensure_admin(self):
        if not self.is_admin:
            raise PermissionError("Apenas administradores podem realizar esta ação.")

    def ensure_owner_or_admin(self, owner_id: Optional[str], message: str = "Você não tem permissão para alterar este registro."):
        if owner_id != self.uid and not self.is_admin:
            raise PermissionError(message)


def session_required(admin: bool = False):
    """
    Access Token을 검증하고 세션을 해석하여 뷰에 주입합니다.
    admin=True이면 관리자 세션이 아닐 때 403을 반환합니다.
    """
    def decorator(fn):
        @wraps(fn)
        @jwt_required()
        def wrapper(*args, **kwargs):
            auth_service = current_app.services['auth']
            session = auth_service.load_session(get_jwt_identity(), get_jwt())
            if admin and not session.is_admin:
                return jsonify({"error_code": "ADMIN_ONLY", "message": "Acesso restrito a administradores."}), 403
            return fn(*args, session=session, **kwargs)
        return wrapper
    return decorator
