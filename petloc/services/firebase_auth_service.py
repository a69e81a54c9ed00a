# petloc/services/firebase_auth_service.py

import logging
from typing import Optional, Dict, Any
from firebase_admin import auth as firebase_auth


class FirebaseAuthService:
    """Firebase Auth(호스팅 인증 SDK)와의 통신을 담당하는 서비스 클래스입니다."""

    @staticmethod
    def verify_id_token(id_token: str) -> Optional[Dict[str, Any]]:
        """
        클라이언트가 Firebase Auth 로그인 후 전달한 ID Token을 검증하고
        uid / email / name 정보를 반환합니다. 검증 실패 시 None.
        """
        try:
            decoded = firebase_auth.verify_id_token(id_token)
        except (firebase_auth.InvalidIdTokenError, firebase_auth.ExpiredIdTokenError,
                firebase_auth.RevokedIdTokenError, ValueError) as e:
            logging.warning(f"Firebase ID token 검증 실패: {e}")
            return None

        return {
            'uid': decoded['uid'],
            'email': decoded.get('email'),
            'name': decoded.get('name'),
            'picture': decoded.get('picture'),
        }

    @staticmethod
    def create_account(email: str, password: str, display_name: str) -> Dict[str, Any]:
        """
        이메일/비밀번호 계정을 생성합니다.

        :raises firebase_auth.EmailAlreadyExistsError: 이미 사용 중인 이메일
        :raises ValueError: SDK가 거부한 이메일/비밀번호 형식
        """
        record = firebase_auth.create_user(email=email, password=password, display_name=display_name)
        logging.info(f"Firebase Auth 계정 생성 완료 (uid: {record.uid})")
        return {'uid': record.uid, 'email': record.email, 'name': record.display_name}
