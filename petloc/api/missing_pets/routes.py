# petloc/api/missing_pets/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, Response, stream_with_context
from marshmallow import ValidationError
from google.api_core.exceptions import GoogleAPICallError

from petloc.core.errors import backend_error_response
from petloc.core.session import session_required
from petloc.services.live_query import sse_stream
from .schemas import MissingPetCreateSchema, FoundStatusSchema, MissingPetResponseSchema

missing_pets_bp = Blueprint('missing_pets_bp', __name__)


@missing_pets_bp.route('/', methods=['GET'])
@session_required()
def list_reports(session):
    """실종/발견 게시판 목록. ?filter=all|missing|found"""
    service = current_app.services['missing_pets']
    try:
        reports = service.list_reports(request.args.get('filter', 'all'))
        return jsonify(MissingPetResponseSchema(many=True).dump(reports)), 200
    except ValueError as e:
        return jsonify({"error_code": "INVALID_FILTER", "message": str(e)}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar desaparecidos")


@missing_pets_bp.route('/stream', methods=['GET'])
@session_required()
def stream_reports(session):
    service = current_app.services['missing_pets']
    try:
        live = service.live_reports(request.args.get('filter', 'all'))
    except ValueError as e:
        return jsonify({"error_code": "INVALID_FILTER", "message": str(e)}), 400
    stream = sse_stream(live, MissingPetResponseSchema(many=True).dump, current_app.config['LIVE_STREAM_HEARTBEAT'])
    return Response(stream_with_context(stream), mimetype='text/event-stream')


@missing_pets_bp.route('/', methods=['POST'])
@session_required()
def create_report(session):
    service = current_app.services['missing_pets']
    try:
        data = MissingPetCreateSchema().load(request.get_json(silent=True) or {})
        return jsonify(MissingPetResponseSchema().dump(service.create_report(session, data))), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "registrar desaparecido")
    except Exception as e:
        logging.error(f"실종 게시물 등록 중 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "REPORT_CREATION_FAILED", "message": "Erro ao registrar desaparecido."}), 500


@missing_pets_bp.route('/<string:report_id>/mark-found', methods=['POST'])
@session_required()
def mark_found(report_id: str, session):
    """등록자(또는 관리자)가 '찾음'으로 표시합니다."""
    service = current_app.services['missing_pets']
    try:
        return jsonify(MissingPetResponseSchema().dump(service.mark_found(session, report_id))), 200
    except FileNotFoundError as e:
        return jsonify({"error_code": "REPORT_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except GoogleAPICallError as e:
        return backend_error_response(e, "marcar como encontrado")


# --- 관리자 전용 ---
@missing_pets_bp.route('/admin', methods=['GET'])
@session_required(admin=True)
def list_reports_for_admin(session):
    service = current_app.services['missing_pets']
    try:
        reports = service.list_reports_for_admin(session, request.args.get('filter', 'all'))
        return jsonify(MissingPetResponseSchema(many=True).dump(reports)), 200
    except ValueError as e:
        return jsonify({"error_code": "INVALID_FILTER", "message": str(e)}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar desaparecidos")


@missing_pets_bp.route('/<string:report_id>/found', methods=['PATCH'])
@session_required(admin=True)
def set_found(report_id: str, session):
    service = current_app.services['missing_pets']
    try:
        data = FoundStatusSchema().load(request.get_json(silent=True) or {})
        return jsonify(MissingPetResponseSchema().dump(service.set_found(session, report_id, data['found']))), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except FileNotFoundError as e:
        return jsonify({"error_code": "REPORT_NOT_FOUND", "message": str(e)}), 404
    except GoogleAPICallError as e:
        return backend_error_response(e, "atualizar registro")


@missing_pets_bp.route('/<string:report_id>', methods=['DELETE'])
@session_required(admin=True)
def delete_report(report_id: str, session):
    service = current_app.services['missing_pets']
    try:
        service.delete_report(session, report_id)
        return Response(status=204)
    except FileNotFoundError as e:
        return jsonify({"error_code": "REPORT_NOT_FOUND", "message": str(e)}), 404
    except GoogleAPICallError as e:
        return backend_error_response(e, "excluir registro")
