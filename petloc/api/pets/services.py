# petloc/api/pets/services.py
import logging
from typing import Dict, Any, List
from dataclasses import asdict
from firebase_admin import firestore

from petloc.core.session import Session
from petloc.models.pet import Pet
from petloc.services.firestore_service import new_document_id, snapshot_to_dict, prepare_for_write
from petloc.services.live_query import LiveQuery
from petloc.utils.datetime_utils import DateTimeUtils

EDITABLE_FIELDS = ('name', 'description', 'contact', 'image_base64')


class PetService:
    """반려동물 프로필 CRUD. 목록은 소유자 본인의 반려동물만 반환합니다."""
    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.pets_ref = self.db.collection('pets')

    def _owned_query(self, owner_id: str):
        return self.pets_ref.where('owner_id', '==', owner_id)

    def _get_pet_or_raise(self, pet_id: str) -> Pet:
        data = snapshot_to_dict(self.pets_ref.document(pet_id).get(), 'pet_id')
        if not data:
            raise FileNotFoundError("Pet não encontrado.")
        return Pet.from_dict(data)

    def list_pets(self, session: Session) -> List[Dict[str, Any]]:
        """현재 사용자가 소유한 반려동물만, 최신 등록순으로 반환합니다."""
        pets = [Pet.from_dict(snapshot_to_dict(doc, 'pet_id')) for doc in self._owned_query(session.uid).stream()]
        pets.sort(key=lambda pet: DateTimeUtils.sort_value(pet.created_at), reverse=True)
        return [asdict(pet) for pet in pets]

    def live_pets(self, session: Session) -> LiveQuery:
        """소유자 반려동물 목록의 실시간 구독 객체를 만듭니다 (with 블록에서 사용)."""
        return LiveQuery(
            self._owned_query(session.uid),
            to_item=lambda doc: asdict(Pet.from_dict(snapshot_to_dict(doc, 'pet_id'))),
            sort_key='created_at',
        )

    def create_pet(self, session: Session, data: Dict[str, Any]) -> Dict[str, Any]:
        pet = Pet(
            pet_id=new_document_id(),
            owner_id=session.uid,
            name=data['name'].strip(),
            description=data['description'].strip(),
            contact=data['contact'].strip(),
            image_base64=data.get('image_base64') or None,
        )
        self.pets_ref.document(pet.pet_id).set(prepare_for_write(asdict(pet)))
        logging.info(f"Pet 등록 완료 (pet_id: {pet.pet_id}, owner: {session.uid})")
        return asdict(pet)

    def get_pet(self, session: Session, pet_id: str) -> Dict[str, Any]:
        pet = self._get_pet_or_raise(pet_id)
        session.ensure_owner_or_admin(pet.owner_id, "Você não tem permissão para ver este pet.")
        return asdict(pet)

    def update_pet(self, session: Session, pet_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        """[소유자/관리자] 반려동물 정보를 부분 업데이트합니다."""
        pet = self._get_pet_or_raise(pet_id)
        session.ensure_owner_or_admin(pet.owner_id, "Você não tem permissão para editar este pet.")

        changes = {k: (v.strip() if isinstance(v, str) and k != 'image_base64' else v)
                   for k, v in update_data.items() if k in EDITABLE_FIELDS}
        if not changes:
            raise ValueError("Nenhum dado para atualizar.")
        changes['updated_at'] = DateTimeUtils.now()

        self.pets_ref.document(pet_id).update(prepare_for_write(changes))
        logging.info(f"Pet profile updated for {pet_id} with fields: {list(changes.keys())}")
        return asdict(self._get_pet_or_raise(pet_id))

    def delete_pet(self, session: Session, pet_id: str) -> None:
        pet = self._get_pet_or_raise(pet_id)
        session.ensure_owner_or_admin(pet.owner_id, "Você não tem permissão para excluir este pet.")
        self.pets_ref.document(pet_id).delete()
        logging.info(f"Pet 삭제 완료 (pet_id: {pet_id}, by: {session.uid})")
