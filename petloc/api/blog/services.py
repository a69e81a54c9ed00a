# petloc/api/blog/services.py
import logging
from typing import Dict, Any, List
from dataclasses import asdict
from firebase_admin import firestore

from petloc.core.session import Session
from petloc.models.blog_post import BlogPost
from petloc.services.firestore_service import new_document_id, snapshot_to_dict, prepare_for_write
from petloc.services.live_query import LiveQuery
from petloc.utils.datetime_utils import DateTimeUtils

EDITABLE_FIELDS = ('title', 'description', 'author', 'category', 'icon', 'read_time', 'published_at')


class BlogService:
    """커뮤니티 허브의 블로그 게시물. 조회는 누구나, 작성/수정/삭제는 관리자만."""
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.posts_ref = self.db.collection('blog_posts')

    def _load_all(self) -> List[BlogPost]:
        posts = [BlogPost.from_dict(snapshot_to_dict(doc, 'post_id')) for doc in self.posts_ref.stream()]
        posts.sort(key=lambda p: DateTimeUtils.sort_value(p.published_at), reverse=True)
        return posts

    def _get_post_or_raise(self, post_id: str) -> BlogPost:
        data = snapshot_to_dict(self.posts_ref.document(post_id).get(), 'post_id')
        if not data:
            raise FileNotFoundError("Post não encontrado.")
        return BlogPost.from_dict(data)

    def list_active(self) -> List[Dict[str, Any]]:
        """active가 false가 아닌 게시물을 게시일 내림차순으로 반환합니다."""
        return [asdict(p) for p in self._load_all() if p.active]

    def live_active(self) -> LiveQuery:
        return LiveQuery(
            self.posts_ref,
            to_item=lambda doc: asdict(BlogPost.from_dict(snapshot_to_dict(doc, 'post_id'))),
            sort_key='published_at',
            item_filter=lambda item: item['active'],
        )

    def list_all(self, session: Session) -> List[Dict[str, Any]]:
        session.ensure_admin()
        return [asdict(p) for p in self._load_all()]

    def create_post(self, session: Session, data: Dict[str, Any]) -> Dict[str, Any]:
        session.ensure_admin()
        post = BlogPost(
            post_id=new_document_id(),
            title=data['title'].strip(),
            description=data['description'].strip(),
            author=(data.get('author') or session.display_name).strip(),
            category=data['category'].strip(),
            icon=data.get('icon') or '📝',
            read_time=data.get('read_time') or '5 min',
            published_at=data.get('published_at') or DateTimeUtils.now(),
        )
        self.posts_ref.document(post.post_id).set(prepare_for_write(asdict(post)))
        logging.info(f"블로그 게시물 작성 완료 (post_id: {post.post_id}, by: {session.uid})")
        return asdict(post)

    def update_post(self, session: Session, post_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        session.ensure_admin()
        self._get_post_or_raise(post_id)
        changes = {k: v for k, v in update_data.items() if k in EDITABLE_FIELDS}
        if not changes:
            raise ValueError("Nenhum dado para atualizar.")
        changes['updated_at'] = DateTimeUtils.now()
        self.posts_ref.document(post_id).update(prepare_for_write(changes))
        logging.info(f"블로그 게시물 수정 (post_id: {post_id}, fields: {list(changes.keys())})")
        return asdict(self._get_post_or_raise(post_id))

    def toggle_active(self, session: Session, post_id: str) -> Dict[str, Any]:
        session.ensure_admin()
        post = self._get_post_or_raise(post_id)
        self.posts_ref.document(post_id).update({'active': not post.active, 'updated_at': DateTimeUtils.now()})
        return asdict(self._get_post_or_raise(post_id))

    def delete_post(self, session: Session, post_id: str) -> None:
        session.ensure_admin()
        self._get_post_or_raise(post_id)
        self.posts_ref.document(post_id).delete()
        logging.info(f"블로그 게시물 삭제 (post_id: {post_id}, by: {session.uid})")
