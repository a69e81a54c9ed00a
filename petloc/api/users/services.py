# petloc/api/users/services.py
import logging
from typing import Dict, Any, List, Optional
from firebase_admin import firestore

from petloc.core.session import Session
from petloc.models.user import UserProfile, UserRole
from petloc.services.firestore_service import snapshot_to_dict
from petloc.utils.datetime_utils import DateTimeUtils


class UserAdminService:
    """[관리자] 사용자 목록 조회와 역할 변경. admin 승격은 이 경로로만 가능합니다."""
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.users_ref = self.db.collection('users')

    def list_users(self, session: Session, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """이름/이메일 부분 일치 검색 (대소문자 무시), 가입일 내림차순."""
        session.ensure_admin()
        term = (search or '').strip().lower()
        profiles = [UserProfile.from_dict(snapshot_to_dict(doc, 'user_id')) for doc in self.users_ref.stream()]
        if term:
            profiles = [p for p in profiles
                        if term in (p.display_name or '').lower() or term in (p.email or '').lower()]
        profiles.sort(key=lambda p: DateTimeUtils.sort_value(p.created_at), reverse=True)
        return [p.to_dict() for p in profiles]

    def update_role(self, session: Session, user_id: str, role: str) -> Dict[str, Any]:
        session.ensure_admin()
        new_role = UserRole(role)
        user_ref = self.users_ref.document(user_id)
        data = snapshot_to_dict(user_ref.get(), 'user_id')
        if not data:
            raise FileNotFoundError("Usuário não encontrado.")

        user_ref.update({'role': new_role.value, 'updated_at': DateTimeUtils.now()})
        logging.info(f"사용자 역할 변경 (user_id: {user_id}, role: {new_role.value}, by: {session.uid})")
        return UserProfile.from_dict(snapshot_to_dict(user_ref.get(), 'user_id')).to_dict()
