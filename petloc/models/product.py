# petloc/models/product.py
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from petloc.utils.datetime_utils import DateTimeUtils

PRODUCT_CATEGORIES = ['Alimentação', 'Brinquedos', 'Acessórios', 'Higiene', 'Saúde', 'Outros']
DEFAULT_PRODUCT_CATEGORY = 'Outros'


def _parse_stock(value: Any) -> Optional[int]:
    """숫자로 해석할 수 없는 재고 값은 '재고 미지정'으로 취급합니다."""
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


@dataclass
class Product:
    """
    Firestore 'produtos_loja' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    price는 소수점 2자리 문자열로 저장되고, 표시 시점에 float로 해석됩니다.
    '품절'은 저장된 상태가 아니라 stock에서 파생되는 값입니다.
    """
    product_id: str
    owner_id: str
    name: str
    description: str
    price: str
    contact: str
    category: str = DEFAULT_PRODUCT_CATEGORY
    stock: Optional[int] = None
    image_base64: Optional[str] = None
    active: bool = True
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    updated_at: datetime = field(default_factory=DateTimeUtils.now)

    @property
    def sold_out(self) -> bool:
        return self.stock is not None and self.stock <= 0

    @property
    def unit_price(self) -> Optional[float]:
        """저장된 가격 문자열을 float로 해석합니다. 해석할 수 없는 과거 값이면 None."""
        try:
            value = float(str(self.price).strip().replace(',', '.'))
        except ValueError:
            return None
        return value if math.isfinite(value) else None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Product":
        data = DateTimeUtils.from_firestore(data)
        stock = data.get('stock')
        return cls(
            product_id=data['product_id'],
            owner_id=data['owner_id'],
            name=data.get('name', ''),
            description=data.get('description', ''),
            price=str(data.get('price', '0')),
            contact=data.get('contact', ''),
            category=data.get('category') or DEFAULT_PRODUCT_CATEGORY,
            stock=_parse_stock(stock),
            image_base64=data.get('image_base64') or None,
            active=data.get('active', True) is not False,
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )
