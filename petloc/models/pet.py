# petloc/models/pet.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from petloc.utils.datetime_utils import DateTimeUtils


@dataclass
class Pet:
    """
    Firestore 'pets' 컬렉션 문서 구조.
    한 명의 소유자(owner_id)에게만 속하며, 기본 목록은 소유자 본인에게만 노출됩니다.
    """
    pet_id: str
    owner_id: str
    name: str
    description: str
    contact: str
    image_base64: Optional[str] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Pet":
        data = DateTimeUtils.from_firestore(data)
        return cls(
            pet_id=data['pet_id'],
            owner_id=data['owner_id'],
            name=data.get('name', ''),
            description=data.get('description', ''),
            contact=data.get('contact', ''),
            image_base64=data.get('image_base64') or None,
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )
