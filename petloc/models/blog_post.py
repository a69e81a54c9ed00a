# petloc/models/blog_post.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Any

from petloc.utils.datetime_utils import DateTimeUtils


@dataclass
class BlogPost:
    """Firestore 'blog_posts' 컬렉션 문서 구조. 관리자만 작성/수정합니다."""
    post_id: str
    title: str
    description: str
    author: str
    category: str
    icon: str = '📝'
    read_time: str = '5 min'
    published_at: datetime = field(default_factory=DateTimeUtils.now)
    active: bool = True
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BlogPost":
        data = DateTimeUtils.from_firestore(data)
        return cls(
            post_id=data['post_id'],
            title=data.get('title', ''),
            description=data.get('description', ''),
            author=data.get('author', ''),
            category=data.get('category', ''),
            icon=data.get('icon') or '📝',
            read_time=data.get('read_time') or '5 min',
            published_at=data.get('published_at'),
            # 필드가 없는 과거 문서는 활성으로 간주
            active=data.get('active') is not False,
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )
