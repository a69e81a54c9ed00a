# petloc/api/news/services.py
import hashlib
import logging
from typing import Dict, Any, List, Optional, Set
from dataclasses import asdict
from firebase_admin import firestore

from petloc.core.session import Session
from petloc.services.news_service import NewsService
from petloc.utils.datetime_utils import DateTimeUtils


def management_doc_id(article_id: str) -> str:
    """기사 id에는 '/'가 들어갈 수 있으므로 문서 ID로는 SHA-1 해시를 사용합니다."""
    return hashlib.sha1(article_id.encode('utf-8')).hexdigest()


class NewsManagementService:
    """
    관리자가 숨긴 뉴스 기사 목록('api_news_management')을 관리하고,
    집계 피드에 숨김 필터를 적용합니다.
    """
    def __init__(self, news_service: NewsService, db=None):
        self.news_service = news_service
        self.db = db or firestore.client()
        self.management_ref = self.db.collection('api_news_management')

    def hidden_ids(self) -> Set[str]:
        """숨김 처리된 기사 id 집합. 조회 실패 시 빈 집합 (피드는 필터 없이 표시)."""
        try:
            return {
                (doc.to_dict() or {}).get('article_id')
                for doc in self.management_ref.where('hidden', '==', True).stream()
            } - {None}
        except Exception as e:
            logging.warning(f"숨김 기사 목록 조회 실패, 필터 없이 진행합니다: {e}")
            return set()

    def public_feed(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        """숨김 기사를 제외한 피드. category가 주어지면 해당 카테고리만."""
        hidden = self.hidden_ids()
        articles = [a for a in self.news_service.fetch_all_pet_news() if a.id not in hidden]
        if category:
            articles = [a for a in articles if a.category == category]
        return [asdict(a) for a in articles]

    def managed_feed(self, session: Session) -> List[Dict[str, Any]]:
        """[관리자] 전체 피드 + 각 기사의 hidden 여부."""
        session.ensure_admin()
        hidden = self.hidden_ids()
        feed = []
        for article in self.news_service.fetch_all_pet_news():
            data = asdict(article)
            data['hidden'] = article.id in hidden
            feed.append(data)
        return feed

    def hide_article(self, session: Session, article_id: str, title: Optional[str] = None) -> None:
        session.ensure_admin()
        self.management_ref.document(management_doc_id(article_id)).set({
            'article_id': article_id,
            'title': title or '',
            'hidden': True,
            'hidden_by': session.uid,
            'updated_at': DateTimeUtils.now(),
        })
        logging.info(f"뉴스 숨김 처리 (article_id: {article_id}, by: {session.uid})")

    def unhide_article(self, session: Session, article_id: str) -> None:
        session.ensure_admin()
        self.management_ref.document(management_doc_id(article_id)).delete()
        logging.info(f"뉴스 숨김 해제 (article_id: {article_id}, by: {session.uid})")
