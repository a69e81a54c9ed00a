# petloc/models/chat.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any

from petloc.utils.datetime_utils import DateTimeUtils


@dataclass
class ChatGroup:
    """
    Firestore 'chat_grupos' 컬렉션 문서 구조.
    member_count는 항상 len(member_ids)로부터 계산되어 함께 기록됩니다.
    """
    group_id: str
    name: str
    description: str
    category: str
    creator_id: str
    creator_name: str
    icon: str = '💬'
    member_ids: List[str] = field(default_factory=list)
    member_count: int = 0
    last_message: str = ''
    last_message_at: Optional[datetime] = None
    active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def is_member(self, user_id: str) -> bool:
        return user_id in self.member_ids

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatGroup":
        data = DateTimeUtils.from_firestore(data)
        member_ids = list(data.get('member_ids') or [])
        return cls(
            group_id=data['group_id'],
            name=data.get('name', ''),
            description=data.get('description', ''),
            category=data.get('category', ''),
            creator_id=data.get('creator_id', ''),
            creator_name=data.get('creator_name', ''),
            icon=data.get('icon') or '💬',
            member_ids=member_ids,
            member_count=int(data.get('member_count', len(member_ids))),
            last_message=data.get('last_message') or '',
            last_message_at=data.get('last_message_at'),
            active=data.get('active') is not False,
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )


@dataclass
class ChatMessage:
    """'chat_grupos/{group_id}/mensagens' 서브컬렉션 문서 구조 (추가 전용)."""
    message_id: str
    text: str
    sender_id: str
    sender_name: str
    sender_photo_url: Optional[str] = None
    sent_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ChatMessage":
        data = DateTimeUtils.from_firestore(data)
        return cls(
            message_id=data['message_id'],
            text=data.get('text', ''),
            sender_id=data.get('sender_id', ''),
            sender_name=data.get('sender_name') or 'Usuário',
            sender_photo_url=data.get('sender_photo_url') or None,
            sent_at=data.get('sent_at'),
        )
