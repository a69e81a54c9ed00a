# petloc/utils/datetime_utils.py
"""
프로젝트 전체에서 일관된 시간/날짜 처리를 위한 중앙화된 유틸리티 모듈

이 모듈의 목적:
1. Firestore에 저장되는 모든 시간 값을 timezone-aware UTC로 통일
2. 외부 뉴스 API마다 다른 시간 표현(ISO 문자열, epoch 초)을 하나의 형태로 정규화
3. 채팅 화면의 '오늘/어제' 구분처럼 지역 달력 기준 비교가 필요한 곳에 기준 timezone 제공
"""

import logging
from datetime import datetime, date, timezone, time
from typing import Any, Optional, Union
from dateutil import parser as dateutil_parser
from dateutil import tz

logger = logging.getLogger(__name__)

# 서비스 기본 지역 (브라질 상파울루). 저장은 항상 UTC, 날짜 구분만 지역 시간 기준.
DEFAULT_TIMEZONE = 'America/Sao_Paulo'

# 날짜 값이 없는 문서를 정렬할 때 사용하는 하한값
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def get_zone(zone_name: Optional[str] = None):
        """timezone 이름을 tzinfo로 변환. 알 수 없는 이름이면 UTC."""
        zone = tz.gettz(zone_name or DEFAULT_TIMEZONE)
        if zone is None:
            logger.warning(f"알 수 없는 timezone '{zone_name}', UTC로 대체합니다.")
            return timezone.utc
        return zone

    @staticmethod
    def local_today(zone_name: Optional[str] = None) -> date:
        """지역 달력 기준 오늘 날짜를 반환"""
        return datetime.now(DateTimeUtils.get_zone(zone_name)).date()

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 포맷 문자열을 datetime 객체로 파싱

        지원 포맷:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00.123456Z
        - 2024-01-15T10:30:00
        """
        try:
            if not iso_string:
                raise ValueError("빈 문자열은 파싱할 수 없습니다")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            dt = dateutil_parser.isoparse(iso_string)

            # timezone-naive인 경우 UTC로 가정
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)

            return dt.astimezone(timezone.utc)

        except Exception as e:
            logger.error(f"ISO datetime 파싱 실패: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}")

    @staticmethod
    def from_epoch_seconds(seconds: Union[int, float]) -> datetime:
        """Unix timestamp(초)를 UTC datetime으로 변환 (Reddit created_utc 등)"""
        if not isinstance(seconds, (int, float)) or isinstance(seconds, bool):
            raise ValueError(f"epoch 초는 숫자여야 합니다: {seconds!r}")
        return datetime.fromtimestamp(seconds, tz=timezone.utc)

    @staticmethod
    def to_iso_string(dt: datetime) -> str:
        """datetime 객체를 ISO 포맷 문자열로 변환 (Z 접미사)"""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        else:
            dt = dt.astimezone(timezone.utc)
        return dt.isoformat().replace('+00:00', 'Z')

    @staticmethod
    def to_local_date(dt: datetime, zone_name: Optional[str] = None) -> date:
        """UTC datetime을 지역 달력 날짜로 변환"""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(DateTimeUtils.get_zone(zone_name)).date()

    @staticmethod
    def to_display_date(d: date) -> str:
        """date 객체를 dd/mm/yyyy 형식 문자열로 변환"""
        return d.strftime('%d/%m/%Y')

    @staticmethod
    def sort_value(value: Any) -> datetime:
        """
        정렬 키로 사용할 수 있도록 값을 datetime으로 변환합니다.
        값이 없거나 해석할 수 없으면 EPOCH를 반환하여 내림차순 정렬 시 맨 뒤로 보냅니다.
        """
        if value is None:
            return EPOCH
        if isinstance(value, str):
            try:
                return DateTimeUtils.parse_iso_datetime(value)
            except ValueError:
                return EPOCH
        converted = DateTimeUtils.from_firestore(value)
        if isinstance(converted, datetime):
            return converted
        if isinstance(converted, date):
            return datetime.combine(converted, time.min).replace(tzinfo=timezone.utc)
        return EPOCH

    @staticmethod
    def for_firestore(obj: Any) -> Any:
        """
        Firestore 저장을 위해 객체의 날짜/시간 필드를 변환

        변환 규칙:
        - date -> datetime (00:00:00 UTC)
        - timezone-naive datetime -> timezone-aware datetime (UTC)
        - dict/list 내부 재귀적 변환
        - 그 외 값(SERVER_TIMESTAMP 등 sentinel 포함)은 그대로
        """
        if isinstance(obj, date) and not isinstance(obj, datetime):
            return datetime.combine(obj, time.min).replace(tzinfo=timezone.utc)
        elif isinstance(obj, datetime):
            if obj.tzinfo is None:
                return obj.replace(tzinfo=timezone.utc)
            return obj.astimezone(timezone.utc)
        elif isinstance(obj, dict):
            return {k: DateTimeUtils.for_firestore(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [DateTimeUtils.for_firestore(item) for item in obj]
        return obj

    @staticmethod
    def from_firestore(obj: Any) -> Any:
        """
        Firestore에서 읽은 데이터의 datetime 필드를 적절히 변환

        변환 규칙:
        - Firestore timestamp(DatetimeWithNanoseconds 포함) -> timezone-aware datetime (UTC)
        - dict/list 내부 재귀적 변환
        """
        try:
            if isinstance(obj, datetime):
                if obj.tzinfo is None:
                    return obj.replace(tzinfo=timezone.utc)
                return obj.astimezone(timezone.utc)

            elif hasattr(obj, 'timestamp') and callable(obj.timestamp):
                return datetime.fromtimestamp(obj.timestamp(), tz=timezone.utc)

            elif isinstance(obj, dict):
                return {k: DateTimeUtils.from_firestore(v) for k, v in obj.items()}

            elif isinstance(obj, list):
                return [DateTimeUtils.from_firestore(item) for item in obj]

            return obj

        except Exception as e:
            logger.error(f"Firestore 읽기 변환 실패: {obj} ({type(obj)}) - {e}")
            # 변환 실패 시 원본 객체 반환 (로그만 남김)
            return obj
