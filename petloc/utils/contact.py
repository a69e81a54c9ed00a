# petloc/utils/contact.py
import re
from typing import Optional
from urllib.parse import quote

WHATSAPP_BASE_URL = "https://wa.me/"
BRAZIL_COUNTRY_CODE = "55"


def whatsapp_url(contact: Optional[str], text: Optional[str] = None) -> Optional[str]:
    """
    자유 형식의 연락처 문자열에서 WhatsApp 딥링크를 만듭니다.
    전화번호로 볼 수 없는 값(이메일 등, 숫자 10자리 미만)이면 None.
    """
    if not contact:
        return None
    digits = re.sub(r'\D', '', contact)
    if len(digits) < 10:
        return None
    # DDD + 번호(10~11자리)만 입력된 경우 국가 코드 보정
    if len(digits) <= 11:
        digits = BRAZIL_COUNTRY_CODE + digits

    url = f"{WHATSAPP_BASE_URL}{digits}"
    if text:
        url += f"?text={quote(text)}"
    return url
