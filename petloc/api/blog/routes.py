# petloc/api/blog/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, Response, stream_with_context
from marshmallow import ValidationError
from google.api_core.exceptions import GoogleAPICallError

from petloc.core.errors import backend_error_response
from petloc.core.session import session_required
from petloc.services.live_query import sse_stream
from .schemas import BlogPostCreateSchema, BlogPostUpdateSchema, BlogPostResponseSchema

blog_bp = Blueprint('blog_bp', __name__)


@blog_bp.route('/', methods=['GET'])
@session_required()
def list_posts(session):
    blog_service = current_app.services['blog']
    try:
        return jsonify(BlogPostResponseSchema(many=True).dump(blog_service.list_active())), 200
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar posts")


@blog_bp.route('/stream', methods=['GET'])
@session_required()
def stream_posts(session):
    blog_service = current_app.services['blog']
    stream = sse_stream(blog_service.live_active(), BlogPostResponseSchema(many=True).dump,
                        current_app.config['LIVE_STREAM_HEARTBEAT'])
    return Response(stream_with_context(stream), mimetype='text/event-stream')


# --- 관리자 전용 ---
@blog_bp.route('/admin', methods=['GET'])
@session_required(admin=True)
def list_all_posts(session):
    blog_service = current_app.services['blog']
    try:
        return jsonify(BlogPostResponseSchema(many=True).dump(blog_service.list_all(session))), 200
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar posts")


@blog_bp.route('/', methods=['POST'])
@session_required(admin=True)
def create_post(session):
    blog_service = current_app.services['blog']
    try:
        data = BlogPostCreateSchema().load(request.get_json(silent=True) or {})
        return jsonify(BlogPostResponseSchema().dump(blog_service.create_post(session, data))), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "publicar post")
    except Exception as e:
        logging.error(f"블로그 게시물 작성 중 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "POST_CREATION_FAILED", "message": "Erro ao publicar post."}), 500


@blog_bp.route('/<string:post_id>', methods=['PATCH'])
@session_required(admin=True)
def update_post(post_id: str, session):
    blog_service = current_app.services['blog']
    try:
        data = BlogPostUpdateSchema().load(request.get_json(silent=True) or {})
        return jsonify(BlogPostResponseSchema().dump(blog_service.update_post(session, post_id, data))), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except FileNotFoundError as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": str(e)}), 404
    except ValueError as e:
        return jsonify({"error_code": "EMPTY_UPDATE", "message": str(e)}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "atualizar post")


@blog_bp.route('/<string:post_id>/toggle-active', methods=['POST'])
@session_required(admin=True)
def toggle_post(post_id: str, session):
    blog_service = current_app.services['blog']
    try:
        return jsonify(BlogPostResponseSchema().dump(blog_service.toggle_active(session, post_id))), 200
    except FileNotFoundError as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": str(e)}), 404
    except GoogleAPICallError as e:
        return backend_error_response(e, "atualizar post")


@blog_bp.route('/<string:post_id>', methods=['DELETE'])
@session_required(admin=True)
def delete_post(post_id: str, session):
    blog_service = current_app.services['blog']
    try:
        blog_service.delete_post(session, post_id)
        return Response(status=204)
    except FileNotFoundError as e:
        return jsonify({"error_code": "POST_NOT_FOUND", "message": str(e)}), 404
    except GoogleAPICallError as e:
        return backend_error_response(e, "excluir post")
