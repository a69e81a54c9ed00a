# petloc/api/products/services.py
import logging
from typing import Dict, Any, List, Optional
from dataclasses import asdict
from firebase_admin import firestore

from petloc.core.session import Session
from petloc.models.product import Product
from petloc.services.firestore_service import new_document_id, snapshot_to_dict, prepare_for_write
from petloc.services.live_query import LiveQuery
from petloc.utils.contact import whatsapp_url
from petloc.utils.datetime_utils import DateTimeUtils


class SoldOutError(Exception):
    """재고가 0 이하인 상품에 대한 구매 시도 (409)."""


def parse_price(raw: Any) -> str:
    """
    가격 입력값을 소수점 2자리 문자열로 정규화합니다.
    쉼표 소수점 구분자를 허용하며, 숫자가 아니거나 0 이하이면 ValueError.
    """
    try:
        value = float(str(raw).strip().replace(',', '.'))
    except (TypeError, ValueError):
        raise ValueError("Preço inválido")
    if not value > 0 or value == float('inf'):
        raise ValueError("Preço inválido")
    return f"{value:.2f}"


def _matches_search(product: Product, search: Optional[str]) -> bool:
    if not search:
        return True
    term = search.strip().lower()
    return term in product.name.lower() or term in product.description.lower()


class ProductService:
    """
    펫 마켓 상품 관리.
    - 목록/상세는 모든 로그인 사용자, 수정/삭제/활성 토글은 등록자 또는 관리자
    - 구매는 시뮬레이션이며 아무것도 기록하지 않습니다.
    """
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.products_ref = self.db.collection('produtos_loja')

    def _load(self, doc) -> Product:
        return Product.from_dict(snapshot_to_dict(doc, 'product_id'))

    def _get_product_or_raise(self, product_id: str) -> Product:
        data = snapshot_to_dict(self.products_ref.document(product_id).get(), 'product_id')
        if not data:
            raise FileNotFoundError("Produto não encontrado.")
        return Product.from_dict(data)

    @staticmethod
    def _sorted(products: List[Product]) -> List[Product]:
        return sorted(products, key=lambda p: DateTimeUtils.sort_value(p.created_at), reverse=True)

    def _to_detail(self, product: Product) -> Dict[str, Any]:
        data = asdict(product)
        data['sold_out'] = product.sold_out
        data['can_purchase'] = not product.sold_out and product.unit_price is not None
        data['unit_price'] = product.unit_price
        data['whatsapp_url'] = whatsapp_url(
            product.contact, f"Olá! Tenho interesse no produto {product.name} (R$ {product.price}) anunciado no PetLoc."
        )
        return data

    def create_product(self, session: Session, data: Dict[str, Any]) -> Dict[str, Any]:
        product = Product(
            product_id=new_document_id(),
            owner_id=session.uid,
            name=data['name'].strip(),
            description=data['description'].strip(),
            price=parse_price(data['price']),
            contact=data['contact'].strip(),
            category=data.get('category') or 'Outros',
            stock=data.get('stock'),
            image_base64=data.get('image_base64') or None,
            active=True,
        )
        self.products_ref.document(product.product_id).set(prepare_for_write(asdict(product)))
        logging.info(f"상품 등록 완료 (product_id: {product.product_id}, owner: {session.uid})")
        return self._to_detail(product)

    def list_active(self, category: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
        """활성 상품 목록. 카테고리는 일치 비교, 검색어는 이름/설명 부분 일치 (대소문자 무시)."""
        query = self.products_ref.where('active', '==', True)
        if category:
            query = query.where('category', '==', category)
        products = [p for p in (self._load(doc) for doc in query.stream()) if _matches_search(p, search)]
        return [self._to_detail(p) for p in self._sorted(products)]

    def live_active(self, category: Optional[str] = None) -> LiveQuery:
        query = self.products_ref.where('active', '==', True)
        if category:
            query = query.where('category', '==', category)
        return LiveQuery(query, to_item=lambda doc: self._to_detail(self._load(doc)), sort_key='created_at')

    def list_mine(self, session: Session) -> List[Dict[str, Any]]:
        """내가 등록한 상품 (비활성 포함)."""
        products = [self._load(doc) for doc in self.products_ref.where('owner_id', '==', session.uid).stream()]
        return [self._to_detail(p) for p in self._sorted(products)]

    def list_all_for_admin(self, session: Session) -> List[Dict[str, Any]]:
        session.ensure_admin()
        products = [self._load(doc) for doc in self.products_ref.stream()]
        return [self._to_detail(p) for p in self._sorted(products)]

    def get_product_detail(self, product_id: str) -> Dict[str, Any]:
        return self._to_detail(self._get_product_or_raise(product_id))

    def toggle_active(self, session: Session, product_id: str) -> Dict[str, Any]:
        """[등록자/관리자] active 값을 반전시킵니다."""
        product = self._get_product_or_raise(product_id)
        session.ensure_owner_or_admin(product.owner_id, "Você não tem permissão para alterar este produto.")
        self.products_ref.document(product_id).update({'active': not product.active, 'updated_at': DateTimeUtils.now()})
        logging.info(f"상품 활성 상태 변경 (product_id: {product_id}, active: {not product.active})")
        return self._to_detail(self._get_product_or_raise(product_id))

    def quote_purchase(self, product_id: str, quantity: int) -> Dict[str, Any]:
        """
        구매 금액을 계산합니다 (시뮬레이션, 저장 없음).

        :raises SoldOutError: 품절 상품. 이 경우 합계를 계산하지 않습니다.
        """
        if quantity < 1:
            raise ValueError("Quantidade inválida")
        product = self._get_product_or_raise(product_id)
        if product.sold_out:
            raise SoldOutError("Produto esgotado.")
        if product.unit_price is None:
            raise ValueError("Preço inválido")
        total = round(product.unit_price * quantity, 2)
        return {
            'product_id': product.product_id,
            'name': product.name,
            'quantity': quantity,
            'unit_price': product.unit_price,
            'total': f"{total:.2f}",
        }

    def delete_product(self, session: Session, product_id: str) -> None:
        product = self._get_product_or_raise(product_id)
        session.ensure_owner_or_admin(product.owner_id, "Você não tem permissão para excluir este produto.")
        self.products_ref.document(product_id).delete()
        logging.info(f"상품 삭제 완료 (product_id: {product_id}, by: {session.uid})")
