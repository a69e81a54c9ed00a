# petloc/services/firestore_service.py
import uuid
import logging
from typing import Optional, Dict, Any

from petloc.utils.datetime_utils import DateTimeUtils


def new_document_id() -> str:
    """문서 ID를 생성합니다. 모든 도메인 문서는 ID를 본문 필드로도 함께 저장합니다."""
    return str(uuid.uuid4())


def snapshot_to_dict(doc, id_field: str) -> Optional[Dict[str, Any]]:
    """
    DocumentSnapshot을 딕셔너리로 변환합니다.
    - 존재하지 않는 문서는 None
    - 본문에 ID 필드가 없는(콘솔에서 직접 만든) 문서는 문서 ID로 보충
    - Firestore timestamp는 UTC datetime으로 정규화
    """
    if doc is None or not doc.exists:
        return None
    data = doc.to_dict() or {}
    data.setdefault(id_field, doc.id)
    return DateTimeUtils.from_firestore(data)


def prepare_for_write(data: Dict[str, Any]) -> Dict[str, Any]:
    """Firestore 저장 전 None이 아닌 날짜 필드를 UTC로 변환합니다."""
    try:
        return DateTimeUtils.for_firestore(data)
    except Exception as e:
        logging.error(f"Firestore 저장 데이터 변환 실패: {e}", exc_info=True)
        raise
