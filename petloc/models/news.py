# petloc/models/news.py
from dataclasses import dataclass
from datetime import datetime


@dataclass
class NewsArticle:
    """
    외부 API에서 매 호출마다 새로 만들어지는 뉴스 항목 (저장되지 않음).
    id는 출처가 제공한 식별자 기반이며, 관리자 숨김 처리의 키로 사용됩니다.
    """
    id: str
    title: str
    description: str
    url: str
    image_url: str
    published_at: datetime
    source: str
    category: str
    api_source: str
    author: str
