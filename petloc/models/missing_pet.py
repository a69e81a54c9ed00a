# petloc/models/missing_pet.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from petloc.utils.datetime_utils import DateTimeUtils


@dataclass
class MissingPetReport:
    """
    Firestore 'desaparecidos' 컬렉션 문서 구조.
    found는 단순 boolean이며 상태 전이 가드는 서비스 계층의 권한 검사뿐입니다.
    """
    report_id: str
    owner_id: str
    name: str
    description: str
    contact: str
    image_base64: Optional[str] = None
    found: bool = False
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MissingPetReport":
        data = DateTimeUtils.from_firestore(data)
        return cls(
            report_id=data['report_id'],
            owner_id=data['owner_id'],
            name=data.get('name', ''),
            description=data.get('description', ''),
            contact=data.get('contact', ''),
            image_base64=data.get('image_base64') or None,
            found=bool(data.get('found', False)),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )
