# petloc/api/auth/services.py
import logging
from datetime import datetime
from typing import Dict, Any, Tuple, Optional
from firebase_admin import firestore
from flask import Flask

from petloc.core.session import Session
from petloc.models.user import UserProfile, UserRole
from petloc.services.firestore_service import snapshot_to_dict, prepare_for_write
from petloc.utils.datetime_utils import DateTimeUtils


class AuthService:
    """
    로그인한 계정(Firebase UID)을 사용자 프로필과 역할로 해석하는 서비스.

    - 프로필 문서는 항상 users/{uid}에 하나만 존재합니다 (UID 기준 단일 키).
    - 조회/생성이 실패하면 역할은 'user'로 떨어집니다. 절대 admin으로 열리지 않습니다.
    """
    def __init__(self):
        self.db = None
        self.users_ref = None
        self.revoked_tokens_ref = None
        self.app: Optional[Flask] = None

    def init_app(self, app: Flask, db=None):
        """앱 초기화 과정에서 호출되어 DB 연결 및 앱 컨텍스트를 설정합니다."""
        self.db = db or firestore.client()
        self.users_ref = self.db.collection('users')
        self.revoked_tokens_ref = self.db.collection('revoked_tokens')
        self.app = app

    # --- 세션 / 역할 해석 ---
    def get_profile(self, uid: str) -> Optional[UserProfile]:
        data = snapshot_to_dict(self.users_ref.document(uid).get(), 'user_id')
        return UserProfile.from_dict(data) if data else None

    def create_profile(self, uid: str, email: Optional[str], display_name: Optional[str]) -> UserProfile:
        """신규 프로필을 role='user'로 생성합니다. 클라이언트 경로로는 admin을 만들 수 없습니다."""
        profile = UserProfile(
            user_id=uid,
            email=email,
            display_name=display_name or 'Usuário',
            role=UserRole.USER,
        )
        self.users_ref.document(uid).set(prepare_for_write(profile.to_dict()))
        logging.info(f"사용자 프로필 생성 완료 (uid: {uid})")
        return profile

    def resolve_session(self, uid: str, email: Optional[str], display_name: Optional[str],
                        photo_url: Optional[str] = None) -> Tuple[Session, Optional[UserProfile], bool]:
        """
        로그인 직후 호출. 프로필이 있으면 그 역할을 채택하고, 없으면 생성합니다.
        :return: (세션, 프로필 또는 None, 신규 생성 여부)
        """
        profile = None
        is_new_user = False
        try:
            profile = self.get_profile(uid)
            if profile is None:
                profile = self.create_profile(uid, email, display_name)
                is_new_user = True
        except Exception as e:
            logging.error(f"프로필 조회/생성 실패, 역할을 'user'로 처리합니다 (uid: {uid}): {e}", exc_info=True)

        role = profile.role if profile else UserRole.USER
        name = (profile.display_name if profile else None) or display_name or 'Usuário'
        session = Session(uid=uid, email=email, display_name=name, role=role, photo_url=photo_url)
        return session, profile, is_new_user

    def load_session(self, uid: str, claims: Optional[Dict[str, Any]] = None) -> Session:
        """
        API 요청마다 호출. 토큰 클레임의 신원 정보 + 프로필의 최신 역할로 세션을 만듭니다.
        프로필 생성은 하지 않습니다.
        """
        claims = claims or {}
        role = UserRole.USER
        try:
            profile = self.get_profile(uid)
            if profile:
                role = profile.role
        except Exception as e:
            logging.warning(f"역할 조회 실패, 'user'로 처리합니다 (uid: {uid}): {e}")

        return Session(
            uid=uid,
            email=claims.get('email'),
            display_name=claims.get('name') or 'Usuário',
            role=role,
            photo_url=claims.get('picture'),
        )

    # --- Blocklist 관련 로직 ---
    def add_token_to_blocklist(self, jti: str, expires: datetime):
        """전달받은 토큰의 jti를 만료 시간과 함께 Firestore에 저장합니다."""
        try:
            token_data = prepare_for_write({
                'revoked_at': DateTimeUtils.now(),
                'expires_at': expires
            })
            self.revoked_tokens_ref.document(jti).set(token_data)
        except Exception as e:
            logging.error(f"Blocklist 토큰 추가 실패 (jti: {jti}): {e}")
            raise

    def is_token_revoked(self, jwt_payload: dict) -> bool:
        """jti를 이용해 해당 토큰이 무효화 목록에 있는지 확인합니다."""
        jti = jwt_payload['jti']
        doc = self.revoked_tokens_ref.document(jti).get()
        return doc.exists

    def logout_user(self, access_jti: str, access_exp: int, refresh_jti: str, refresh_exp: int):
        """Access 토큰과 Refresh 토큰을 모두 Blocklist에 추가합니다."""
        self.add_token_to_blocklist(access_jti, DateTimeUtils.from_epoch_seconds(access_exp))
        self.add_token_to_blocklist(refresh_jti, DateTimeUtils.from_epoch_seconds(refresh_exp))
        logging.info(f"사용자 로그아웃 처리 완료. JTI: {access_jti[:8]}..., {refresh_jti[:8]}...")


auth_service = AuthService()
