# petloc/api/pets/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, Response, stream_with_context
from marshmallow import ValidationError
from google.api_core.exceptions import GoogleAPICallError

from petloc.core.errors import backend_error_response
from petloc.core.session import session_required
from petloc.services.live_query import sse_stream
from .schemas import PetCreateSchema, PetUpdateSchema, PetResponseSchema

pets_bp = Blueprint('pets_bp', __name__)


@pets_bp.route('/', methods=['GET'])
@session_required()
def list_my_pets(session):
    """현재 사용자의 반려동물 목록."""
    pet_service = current_app.services['pets']
    try:
        pets = pet_service.list_pets(session)
        return jsonify(PetResponseSchema(many=True).dump(pets)), 200
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar pets")


@pets_bp.route('/stream', methods=['GET'])
@session_required()
def stream_my_pets(session):
    """반려동물 목록 실시간 스트림 (Server-Sent Events)."""
    pet_service = current_app.services['pets']
    live = pet_service.live_pets(session)
    stream = sse_stream(live, PetResponseSchema(many=True).dump, current_app.config['LIVE_STREAM_HEARTBEAT'])
    return Response(stream_with_context(stream), mimetype='text/event-stream')


@pets_bp.route('/', methods=['POST'])
@session_required()
def create_pet(session):
    pet_service = current_app.services['pets']
    try:
        validated_data = PetCreateSchema().load(request.get_json(silent=True) or {})
        new_pet = pet_service.create_pet(session, validated_data)
        return jsonify(PetResponseSchema().dump(new_pet)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "cadastrar pet")
    except Exception as e:
        logging.error(f"Pet registration API error: {e}", exc_info=True)
        return jsonify({"error_code": "PET_REGISTRATION_FAILED", "message": "Erro ao cadastrar pet."}), 500


@pets_bp.route('/<string:pet_id>', methods=['GET'])
@session_required()
def get_pet(pet_id: str, session):
    """[소유자/관리자] 특정 반려동물 정보를 조회합니다."""
    pet_service = current_app.services['pets']
    try:
        return jsonify(PetResponseSchema().dump(pet_service.get_pet(session, pet_id))), 200
    except FileNotFoundError as e:
        return jsonify({"error_code": "PET_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar pet")


@pets_bp.route('/<string:pet_id>', methods=['PATCH'])
@session_required()
def update_pet(pet_id: str, session):
    """[소유자/관리자] 반려동물 정보를 수정합니다 (부분 업데이트)."""
    pet_service = current_app.services['pets']
    try:
        update_data = PetUpdateSchema().load(request.get_json(silent=True) or {})
        updated_pet = pet_service.update_pet(session, pet_id, update_data)
        return jsonify(PetResponseSchema().dump(updated_pet)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except FileNotFoundError as e:
        return jsonify({"error_code": "PET_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except ValueError as e:
        return jsonify({"error_code": "EMPTY_UPDATE", "message": str(e)}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "atualizar pet")
    except Exception as e:
        logging.error(f"Update pet API error (pet_id: {pet_id}): {e}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR", "message": "Erro ao atualizar pet."}), 500


@pets_bp.route('/<string:pet_id>', methods=['DELETE'])
@session_required()
def delete_pet(pet_id: str, session):
    pet_service = current_app.services['pets']
    try:
        pet_service.delete_pet(session, pet_id)
        return Response(status=204)
    except FileNotFoundError as e:
        return jsonify({"error_code": "PET_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except GoogleAPICallError as e:
        return backend_error_response(e, "excluir pet")
