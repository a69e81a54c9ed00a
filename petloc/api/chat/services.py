# petloc/api/chat/services.py
import logging
from datetime import date, timedelta
from typing import Dict, Any, List, Optional
from dataclasses import asdict
from firebase_admin import firestore

from petloc.core.session import Session
from petloc.models.chat import ChatGroup, ChatMessage
from petloc.services.firestore_service import new_document_id, snapshot_to_dict, prepare_for_write
from petloc.services.live_query import LiveQuery
from petloc.utils.datetime_utils import DateTimeUtils

EDITABLE_FIELDS = ('name', 'description', 'category', 'icon')
# Firestore batch 한 번에 허용되는 쓰기는 최대 500개
BATCH_WRITE_LIMIT = 499


def group_messages_by_day(messages: List[Dict[str, Any]], today: date,
                          zone_name: Optional[str] = None) -> List[Dict[str, Any]]:
    """
    시간순 메시지 목록을 지역 달력 날짜별로 묶습니다.
    label: 'Hoje' / 'Ontem' / dd/mm/yyyy. 서버 시각이 아직 없는 메시지는 오늘로 취급합니다.
    """
    sections: List[Dict[str, Any]] = []
    for message in messages:
        sent_at = message.get('sent_at')
        day = DateTimeUtils.to_local_date(sent_at, zone_name) if sent_at else today
        if not sections or sections[-1]['date'] != day:
            if day == today:
                label = 'Hoje'
            elif day == today - timedelta(days=1):
                label = 'Ontem'
            else:
                label = DateTimeUtils.to_display_date(day)
            sections.append({'label': label, 'date': day, 'messages': []})
        sections[-1]['messages'].append(message)
    return sections


class ChatService:
    """
    채팅 그룹과 메시지.
    - 그룹을 열면 자동으로 참여합니다 (트랜잭션, 중복 참여 없음)
    - 메시지 작성과 그룹 요약(last_message) 갱신은 하나의 트랜잭션으로 기록됩니다.
    """
    def __init__(self, db=None, zone_name: Optional[str] = None):
        self.db = db or firestore.client()
        self.groups_ref = self.db.collection('chat_grupos')
        self.zone_name = zone_name

    def _messages_ref(self, group_id: str):
        return self.groups_ref.document(group_id).collection('mensagens')

    def _get_group_or_raise(self, group_id: str) -> ChatGroup:
        data = snapshot_to_dict(self.groups_ref.document(group_id).get(), 'group_id')
        if not data:
            raise FileNotFoundError("Grupo não encontrado.")
        return ChatGroup.from_dict(data)

    @staticmethod
    def _to_response(group: ChatGroup, session: Optional[Session] = None) -> Dict[str, Any]:
        data = asdict(group)
        data['is_member'] = bool(session and group.is_member(session.uid))
        return data

    def _sorted(self, groups: List[ChatGroup]) -> List[ChatGroup]:
        return sorted(groups, key=lambda g: DateTimeUtils.sort_value(g.created_at), reverse=True)

    # --- 그룹 ---
    def create_group(self, session: Session, data: Dict[str, Any]) -> Dict[str, Any]:
        """생성자가 유일한 멤버(member_count=1)인 새 그룹을 만듭니다."""
        now = DateTimeUtils.now()
        group = ChatGroup(
            group_id=new_document_id(),
            name=data['name'].strip(),
            description=data['description'].strip(),
            category=data.get('category') or 'Geral',
            icon=data.get('icon') or '💬',
            creator_id=session.uid,
            creator_name=session.display_name,
            member_ids=[session.uid],
            member_count=1,
            last_message='',
            active=True,
            created_at=now,
            updated_at=now,
        )
        self.groups_ref.document(group.group_id).set(prepare_for_write(asdict(group)))
        logging.info(f"채팅 그룹 생성 완료 (group_id: {group.group_id}, creator: {session.uid})")
        return self._to_response(group, session)

    def list_groups(self, session: Session) -> List[Dict[str, Any]]:
        """활성 그룹 목록."""
        docs = self.groups_ref.where('active', '==', True).stream()
        groups = [ChatGroup.from_dict(snapshot_to_dict(doc, 'group_id')) for doc in docs]
        return [self._to_response(g, session) for g in self._sorted(groups)]

    def live_groups(self, session: Session) -> LiveQuery:
        return LiveQuery(
            self.groups_ref.where('active', '==', True),
            to_item=lambda doc: self._to_response(ChatGroup.from_dict(snapshot_to_dict(doc, 'group_id')), session),
            sort_key='created_at',
        )

    def open_group(self, session: Session, group_id: str) -> Dict[str, Any]:
        """
        그룹을 열고, 멤버가 아니면 참여시킵니다.
        member_ids 추가와 member_count 갱신이 한 트랜잭션에서 일어나므로
        동시에 여러 번 열어도 같은 사용자가 두 번 집계되지 않습니다.
        """
        group_ref = self.groups_ref.document(group_id)
        transaction = self.db.transaction()

        @firestore.transactional
        def _join_in_transaction(transaction, uid):
            snapshot = group_ref.get(transaction=transaction)
            data = snapshot_to_dict(snapshot, 'group_id')
            if not data:
                raise FileNotFoundError("Grupo não encontrado.")

            member_ids = list(data.get('member_ids') or [])
            if uid in member_ids:
                return data, False
            member_ids.append(uid)
            changes = {'member_ids': member_ids, 'member_count': len(member_ids), 'updated_at': DateTimeUtils.now()}
            transaction.update(group_ref, changes)
            data.update(changes)
            return data, True

        data, joined = _join_in_transaction(transaction, session.uid)
        if joined:
            logging.info(f"채팅 그룹 참여 (group_id: {group_id}, user: {session.uid})")
        return self._to_response(ChatGroup.from_dict(data), session)

    # --- 메시지 ---
    def send_message(self, session: Session, group_id: str, text: str) -> Dict[str, Any]:
        """
        메시지 문서 생성과 그룹 요약 갱신을 하나의 트랜잭션으로 기록합니다.
        시각은 서버 타임스탬프를 사용합니다. 요약은 마지막으로 커밋한 쪽이 남습니다.
        """
        text = (text or '').strip()
        if not text:
            raise ValueError("A mensagem não pode estar vazia.")

        group_ref = self.groups_ref.document(group_id)
        message_ref = self._messages_ref(group_id).document(new_document_id())
        transaction = self.db.transaction()

        @firestore.transactional
        def _send_in_transaction(transaction, session):
            snapshot = group_ref.get(transaction=transaction)
            data = snapshot_to_dict(snapshot, 'group_id')
            if not data:
                raise FileNotFoundError("Grupo não encontrado.")
            if data.get('active') is False:
                raise PermissionError("Este grupo está inativo.")

            transaction.set(message_ref, {
                'message_id': message_ref.id,
                'text': text,
                'sender_id': session.uid,
                'sender_name': session.display_name,
                'sender_photo_url': session.photo_url,
                'sent_at': firestore.SERVER_TIMESTAMP,
            })
            transaction.update(group_ref, {
                'last_message': text,
                'last_message_at': firestore.SERVER_TIMESTAMP,
                'updated_at': firestore.SERVER_TIMESTAMP,
            })

        _send_in_transaction(transaction, session)
        logging.info(f"메시지 전송 완료 (group_id: {group_id}, message_id: {message_ref.id})")
        return asdict(ChatMessage.from_dict(snapshot_to_dict(message_ref.get(), 'message_id')))

    def list_messages(self, session: Session, group_id: str) -> List[Dict[str, Any]]:
        """그룹 메시지를 보낸 시각 오름차순으로 반환합니다."""
        self._get_group_or_raise(group_id)
        query = self._messages_ref(group_id).order_by('sent_at', direction=firestore.Query.ASCENDING)
        return [asdict(ChatMessage.from_dict(snapshot_to_dict(doc, 'message_id'))) for doc in query.stream()]

    def list_messages_by_day(self, session: Session, group_id: str) -> List[Dict[str, Any]]:
        messages = self.list_messages(session, group_id)
        return group_messages_by_day(messages, DateTimeUtils.local_today(self.zone_name), self.zone_name)

    def live_messages(self, session: Session, group_id: str) -> LiveQuery:
        self._get_group_or_raise(group_id)
        return LiveQuery(
            self._messages_ref(group_id),
            to_item=lambda doc: asdict(ChatMessage.from_dict(snapshot_to_dict(doc, 'message_id'))),
            sort_key='sent_at',
            descending=False,
        )

    # --- 관리자 ---
    def list_all(self, session: Session) -> List[Dict[str, Any]]:
        session.ensure_admin()
        groups = [ChatGroup.from_dict(snapshot_to_dict(doc, 'group_id')) for doc in self.groups_ref.stream()]
        return [self._to_response(g, session) for g in self._sorted(groups)]

    def update_group(self, session: Session, group_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        session.ensure_admin()
        self._get_group_or_raise(group_id)
        changes = {k: v.strip() if isinstance(v, str) else v for k, v in update_data.items() if k in EDITABLE_FIELDS}
        if not changes:
            raise ValueError("Nenhum dado para atualizar.")
        changes['updated_at'] = DateTimeUtils.now()
        self.groups_ref.document(group_id).update(prepare_for_write(changes))
        return self._to_response(self._get_group_or_raise(group_id), session)

    def toggle_active(self, session: Session, group_id: str) -> Dict[str, Any]:
        session.ensure_admin()
        group = self._get_group_or_raise(group_id)
        self.groups_ref.document(group_id).update({'active': not group.active, 'updated_at': DateTimeUtils.now()})
        logging.info(f"채팅 그룹 활성 상태 변경 (group_id: {group_id}, active: {not group.active})")
        return self._to_response(self._get_group_or_raise(group_id), session)

    def delete_group(self, session: Session, group_id: str) -> None:
        """
        그룹과 메시지 서브컬렉션을 함께 삭제합니다.
        메시지는 BATCH_WRITE_LIMIT개 단위로 나누어 커밋하고, 그룹 문서는 마지막 batch에서 지웁니다.
        """
        session.ensure_admin()
        self._get_group_or_raise(group_id)
        batch = self.db.batch()
        pending = 0
        for doc in self._messages_ref(group_id).stream():
            batch.delete(doc.reference)
            pending += 1
            if pending == BATCH_WRITE_LIMIT:
                batch.commit()
                batch = self.db.batch()
                pending = 0
        batch.delete(self.groups_ref.document(group_id))
        batch.commit()
        logging.info(f"채팅 그룹 삭제 (group_id: {group_id}, by: {session.uid})")

    def reconcile_member_counts(self, session: Session) -> int:
        """
        member_count가 len(member_ids)와 어긋난 과거 문서를 바로잡습니다.
        수정한 문서 수를 반환합니다.
        """
        session.ensure_admin()
        fixed = 0
        for doc in self.groups_ref.stream():
            data = doc.to_dict() or {}
            member_ids = list(data.get('member_ids') or [])
            if data.get('member_count') != len(member_ids):
                doc.reference.update({'member_count': len(member_ids)})
                fixed += 1
        logging.info(f"member_count 보정 완료 ({fixed}개 그룹)")
        return fixed
