# petloc/api/missing_pets/services.py
import logging
from typing import Dict, Any, List, Optional
from dataclasses import asdict
from firebase_admin import firestore

from petloc.core.session import Session
from petloc.models.missing_pet import MissingPetReport
from petloc.services.firestore_service import new_document_id, snapshot_to_dict, prepare_for_write
from petloc.services.live_query import LiveQuery
from petloc.utils.contact import whatsapp_url
from petloc.utils.datetime_utils import DateTimeUtils

REPORT_FILTERS = ('all', 'missing', 'found')
UNKNOWN_OWNER_EMAIL = 'Email não encontrado'


def _matches_filter(report: Dict[str, Any], status_filter: str) -> bool:
    if status_filter == 'missing':
        return not report.get('found')
    if status_filter == 'found':
        return bool(report.get('found'))
    return True


class MissingPetService:
    """
    실종 반려동물 게시판.
    - 누구나 조회 가능, 등록자는 본인 게시물을 '찾음'으로 표시 가능 (되돌리기 불가)
    - 관리자만 found 값을 되돌리거나 게시물을 삭제할 수 있습니다.
    """
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.reports_ref = self.db.collection('desaparecidos')
        self.users_ref = self.db.collection('users')

    def _to_response(self, report: MissingPetReport) -> Dict[str, Any]:
        data = asdict(report)
        data['whatsapp_url'] = whatsapp_url(report.contact, f"Olá! Vi o anúncio do pet {report.name} no PetLoc.")
        return data

    def _get_report_or_raise(self, report_id: str) -> MissingPetReport:
        data = snapshot_to_dict(self.reports_ref.document(report_id).get(), 'report_id')
        if not data:
            raise FileNotFoundError("Registro não encontrado.")
        return MissingPetReport.from_dict(data)

    def list_reports(self, status_filter: str = 'all') -> List[Dict[str, Any]]:
        """전체 게시물을 등록일 내림차순으로 반환합니다 (필터: all / missing / found)."""
        if status_filter not in REPORT_FILTERS:
            raise ValueError(f"Filtro inválido: {status_filter}")
        reports = [MissingPetReport.from_dict(snapshot_to_dict(doc, 'report_id')) for doc in self.reports_ref.stream()]
        reports.sort(key=lambda r: DateTimeUtils.sort_value(r.created_at), reverse=True)
        return [self._to_response(r) for r in reports if _matches_filter(asdict(r), status_filter)]

    def live_reports(self, status_filter: str = 'all') -> LiveQuery:
        if status_filter not in REPORT_FILTERS:
            raise ValueError(f"Filtro inválido: {status_filter}")
        return LiveQuery(
            self.reports_ref,
            to_item=lambda doc: self._to_response(MissingPetReport.from_dict(snapshot_to_dict(doc, 'report_id'))),
            sort_key='created_at',
            item_filter=lambda item: _matches_filter(item, status_filter),
        )

    def create_report(self, session: Session, data: Dict[str, Any]) -> Dict[str, Any]:
        report = MissingPetReport(
            report_id=new_document_id(),
            owner_id=session.uid,
            name=data['name'].strip(),
            description=data['description'].strip(),
            contact=data['contact'].strip(),
            image_base64=data.get('image_base64') or None,
            found=False,
        )
        self.reports_ref.document(report.report_id).set(prepare_for_write(asdict(report)))
        logging.info(f"실종 게시물 등록 완료 (report_id: {report.report_id})")
        return self._to_response(report)

    def mark_found(self, session: Session, report_id: str) -> Dict[str, Any]:
        """[등록자/관리자] '찾음'으로 표시합니다. 일반 사용자 흐름에서는 되돌릴 수 없습니다."""
        report = self._get_report_or_raise(report_id)
        session.ensure_owner_or_admin(report.owner_id, "Apenas o autor pode marcar este pet como encontrado.")
        self.reports_ref.document(report_id).update({'found': True, 'updated_at': DateTimeUtils.now()})
        logging.info(f"실종 게시물 '찾음' 처리 (report_id: {report_id}, by: {session.uid})")
        return self._to_response(self._get_report_or_raise(report_id))

    def set_found(self, session: Session, report_id: str, found: bool) -> Dict[str, Any]:
        """[관리자] found 값을 직접 지정합니다 (되돌리기 포함)."""
        session.ensure_admin()
        self._get_report_or_raise(report_id)
        self.reports_ref.document(report_id).update({'found': found, 'updated_at': DateTimeUtils.now()})
        return self._to_response(self._get_report_or_raise(report_id))

    def delete_report(self, session: Session, report_id: str) -> None:
        session.ensure_admin()
        self._get_report_or_raise(report_id)
        self.reports_ref.document(report_id).delete()
        logging.info(f"실종 게시물 삭제 (report_id: {report_id}, by: {session.uid})")

    def list_reports_for_admin(self, session: Session, status_filter: str = 'all') -> List[Dict[str, Any]]:
        """[관리자] 게시물마다 등록자 이메일을 붙여서 반환합니다."""
        session.ensure_admin()
        reports = self.list_reports(status_filter)
        emails: Dict[str, Optional[str]] = {}
        for report in reports:
            owner_id = report['owner_id']
            if owner_id not in emails:
                emails[owner_id] = self._owner_email(owner_id)
            report['owner_email'] = emails[owner_id]
        return reports

    def _owner_email(self, owner_id: str) -> str:
        try:
            doc = self.users_ref.document(owner_id).get()
            if doc.exists:
                return (doc.to_dict() or {}).get('email') or UNKNOWN_OWNER_EMAIL
        except Exception as e:
            logging.warning(f"등록자 이메일 조회 실패 (owner_id: {owner_id}): {e}")
            return 'Erro ao carregar email'
        return UNKNOWN_OWNER_EMAIL
