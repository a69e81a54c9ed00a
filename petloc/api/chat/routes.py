# petloc/api/chat/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, Response, stream_with_context
from marshmallow import ValidationError
from google.api_core.exceptions import GoogleAPICallError

from petloc.core.errors import backend_error_response
from petloc.core.session import session_required
from petloc.services.live_query import sse_stream
from .schemas import (
    ChatGroupCreateSchema, ChatGroupUpdateSchema, MessageCreateSchema,
    ChatGroupResponseSchema, ChatMessageResponseSchema, MessageDaySectionSchema
)

chat_bp = Blueprint('chat_bp', __name__)


# --- 그룹 ---
@chat_bp.route('/groups', methods=['GET'])
@session_required()
def list_groups(session):
    chat_service = current_app.services['chat']
    try:
        return jsonify(ChatGroupResponseSchema(many=True).dump(chat_service.list_groups(session))), 200
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar grupos")


@chat_bp.route('/groups/stream', methods=['GET'])
@session_required()
def stream_groups(session):
    chat_service = current_app.services['chat']
    stream = sse_stream(chat_service.live_groups(session), ChatGroupResponseSchema(many=True).dump,
                        current_app.config['LIVE_STREAM_HEARTBEAT'])
    return Response(stream_with_context(stream), mimetype='text/event-stream')


@chat_bp.route('/groups', methods=['POST'])
@session_required()
def create_group(session):
    chat_service = current_app.services['chat']
    try:
        data = ChatGroupCreateSchema().load(request.get_json(silent=True) or {})
        return jsonify(ChatGroupResponseSchema().dump(chat_service.create_group(session, data))), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "criar grupo")
    except Exception as e:
        logging.error(f"채팅 그룹 생성 중 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "GROUP_CREATION_FAILED", "message": "Erro ao criar grupo."}), 500


@chat_bp.route('/groups/<string:group_id>/open', methods=['POST'])
@session_required()
def open_group(group_id: str, session):
    """그룹 입장. 멤버가 아니면 자동으로 참여합니다."""
    chat_service = current_app.services['chat']
    try:
        return jsonify(ChatGroupResponseSchema().dump(chat_service.open_group(session, group_id))), 200
    except FileNotFoundError as e:
        return jsonify({"error_code": "GROUP_NOT_FOUND", "message": str(e)}), 404
    except GoogleAPICallError as e:
        return backend_error_response(e, "entrar no grupo")


# --- 메시지 ---
@chat_bp.route('/groups/<string:group_id>/messages', methods=['GET'])
@session_required()
def list_messages(group_id: str, session):
    """메시지 목록. ?grouped=day 이면 날짜 구분선 단위로 묶어서 반환합니다."""
    chat_service = current_app.services['chat']
    try:
        if request.args.get('grouped') == 'day':
            sections = chat_service.list_messages_by_day(session, group_id)
            return jsonify(MessageDaySectionSchema(many=True).dump(sections)), 200
        messages = chat_service.list_messages(session, group_id)
        return jsonify(ChatMessageResponseSchema(many=True).dump(messages)), 200
    except FileNotFoundError as e:
        return jsonify({"error_code": "GROUP_NOT_FOUND", "message": str(e)}), 404
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar mensagens")


@chat_bp.route('/groups/<string:group_id>/messages/stream', methods=['GET'])
@session_required()
def stream_messages(group_id: str, session):
    chat_service = current_app.services['chat']
    try:
        live = chat_service.live_messages(session, group_id)
    except FileNotFoundError as e:
        return jsonify({"error_code": "GROUP_NOT_FOUND", "message": str(e)}), 404
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar mensagens")
    stream = sse_stream(live, ChatMessageResponseSchema(many=True).dump, current_app.config['LIVE_STREAM_HEARTBEAT'])
    return Response(stream_with_context(stream), mimetype='text/event-stream')


@chat_bp.route('/groups/<string:group_id>/messages', methods=['POST'])
@session_required()
def send_message(group_id: str, session):
    chat_service = current_app.services['chat']
    try:
        data = MessageCreateSchema().load(request.get_json(silent=True) or {})
        message = chat_service.send_message(session, group_id, data['text'])
        return jsonify(ChatMessageResponseSchema().dump(message)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "EMPTY_MESSAGE", "message": str(e)}), 400
    except FileNotFoundError as e:
        return jsonify({"error_code": "GROUP_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "GROUP_INACTIVE", "message": str(e)}), 403
    except GoogleAPICallError as e:
        return backend_error_response(e, "enviar mensagem")


# --- 관리자 전용 ---
@chat_bp.route('/admin/groups', methods=['GET'])
@session_required(admin=True)
def list_all_groups(session):
    chat_service = current_app.services['chat']
    try:
        return jsonify(ChatGroupResponseSchema(many=True).dump(chat_service.list_all(session))), 200
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar grupos")


@chat_bp.route('/groups/<string:group_id>', methods=['PATCH'])
@session_required(admin=True)
def update_group(group_id: str, session):
    chat_service = current_app.services['chat']
    try:
        data = ChatGroupUpdateSchema().load(request.get_json(silent=True) or {})
        return jsonify(ChatGroupResponseSchema().dump(chat_service.update_group(session, group_id, data))), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except FileNotFoundError as e:
        return jsonify({"error_code": "GROUP_NOT_FOUND", "message": str(e)}), 404
    except ValueError as e:
        return jsonify({"error_code": "EMPTY_UPDATE", "message": str(e)}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "atualizar grupo")


@chat_bp.route('/groups/<string:group_id>/toggle-active', methods=['POST'])
@session_required(admin=True)
def toggle_group(group_id: str, session):
    chat_service = current_app.services['chat']
    try:
        return jsonify(ChatGroupResponseSchema().dump(chat_service.toggle_active(session, group_id))), 200
    except FileNotFoundError as e:
        return jsonify({"error_code": "GROUP_NOT_FOUND", "message": str(e)}), 404
    except GoogleAPICallError as e:
        return backend_error_response(e, "atualizar grupo")


@chat_bp.route('/groups/<string:group_id>', methods=['DELETE'])
@session_required(admin=True)
def delete_group(group_id: str, session):
    chat_service = current_app.services['chat']
    try:
        chat_service.delete_group(session, group_id)
        return Response(status=204)
    except FileNotFoundError as e:
        return jsonify({"error_code": "GROUP_NOT_FOUND", "message": str(e)}), 404
    except GoogleAPICallError as e:
        return backend_error_response(e, "excluir grupo")


@chat_bp.route('/admin/reconcile-member-counts', methods=['POST'])
@session_required(admin=True)
def reconcile_member_counts(session):
    chat_service = current_app.services['chat']
    try:
        return jsonify({"fixed": chat_service.reconcile_member_counts(session)}), 200
    except GoogleAPICallError as e:
        return backend_error_response(e, "corrigir contadores")
