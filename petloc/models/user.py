# petloc/models/user.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Dict, Any

from petloc.utils.datetime_utils import DateTimeUtils


class UserRole(Enum):
    USER = "user"
    ADMIN = "admin"

    @classmethod
    def parse(cls, value: Any) -> "UserRole":
        """알 수 없는 값은 항상 USER로 취급합니다 (admin으로 열리지 않음)."""
        try:
            return cls(value)
        except ValueError:
            return cls.USER


@dataclass
class UserProfile:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    문서 ID는 Firebase Auth UID와 동일합니다.
    """
    user_id: str
    email: Optional[str]
    display_name: str
    role: UserRole = UserRole.USER
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "UserProfile":
        data = DateTimeUtils.from_firestore(data)
        return cls(
            user_id=data['user_id'],
            email=data.get('email'),
            display_name=data.get('display_name') or 'Usuário',
            role=UserRole.parse(data.get('role')),
            created_at=data.get('created_at') or DateTimeUtils.now(),
            updated_at=data.get('updated_at') or DateTimeUtils.now(),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'user_id': self.user_id,
            'email': self.email,
            'display_name': self.display_name,
            'role': self.role.value,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }
