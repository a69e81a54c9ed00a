# petloc/api/news/routes.py
from flask import Blueprint, request, jsonify, current_app
from marshmallow import ValidationError
from google.api_core.exceptions import GoogleAPICallError

from petloc.core.errors import backend_error_response
from petloc.core.session import session_required
from .schemas import NewsArticleResponseSchema, ManagedNewsArticleResponseSchema, HideArticleSchema, UnhideArticleSchema

news_bp = Blueprint('news_bp', __name__)


@news_bp.route('', methods=['GET'])
@session_required()
def get_news(session):
    """숨김 처리된 기사를 제외한 통합 뉴스 피드. ?category=Saúde 등으로 필터링."""
    news_management = current_app.services['news']
    articles = news_management.public_feed(request.args.get('category'))
    return jsonify(NewsArticleResponseSchema(many=True).dump(articles)), 200


@news_bp.route('/manage', methods=['GET'])
@session_required(admin=True)
def get_managed_news(session):
    news_management = current_app.services['news']
    return jsonify(ManagedNewsArticleResponseSchema(many=True).dump(news_management.managed_feed(session))), 200


@news_bp.route('/hidden', methods=['POST'])
@session_required(admin=True)
def hide_article(session):
    news_management = current_app.services['news']
    try:
        data = HideArticleSchema().load(request.get_json(silent=True) or {})
        news_management.hide_article(session, data['article_id'], data['title'])
        return jsonify({"article_id": data['article_id'], "hidden": True}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "ocultar notícia")


@news_bp.route('/hidden', methods=['DELETE'])
@session_required(admin=True)
def unhide_article(session):
    news_management = current_app.services['news']
    try:
        data = UnhideArticleSchema().load(request.get_json(silent=True) or {})
        news_management.unhide_article(session, data['article_id'])
        return jsonify({"article_id": data['article_id'], "hidden": False}), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "exibir notícia")
