# petloc/api/products/routes.py
import logging
from flask import Blueprint, request, jsonify, current_app, Response, stream_with_context
from marshmallow import ValidationError
from google.api_core.exceptions import GoogleAPICallError

from petloc.core.errors import backend_error_response
from petloc.core.session import session_required
from petloc.services.live_query import sse_stream
from .schemas import ProductCreateSchema, PurchaseQuoteSchema, ProductResponseSchema, PurchaseQuoteResponseSchema
from .services import SoldOutError

products_bp = Blueprint('products_bp', __name__)


@products_bp.route('/', methods=['GET'])
@session_required()
def list_products(session):
    """활성 상품 목록. ?category=...&search=..."""
    product_service = current_app.services['products']
    try:
        products = product_service.list_active(request.args.get('category'), request.args.get('search'))
        return jsonify(ProductResponseSchema(many=True).dump(products)), 200
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar produtos")


@products_bp.route('/stream', methods=['GET'])
@session_required()
def stream_products(session):
    product_service = current_app.services['products']
    live = product_service.live_active(request.args.get('category'))
    stream = sse_stream(live, ProductResponseSchema(many=True).dump, current_app.config['LIVE_STREAM_HEARTBEAT'])
    return Response(stream_with_context(stream), mimetype='text/event-stream')


@products_bp.route('/mine', methods=['GET'])
@session_required()
def list_my_products(session):
    product_service = current_app.services['products']
    try:
        return jsonify(ProductResponseSchema(many=True).dump(product_service.list_mine(session))), 200
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar seus produtos")


@products_bp.route('/admin', methods=['GET'])
@session_required(admin=True)
def list_all_products(session):
    product_service = current_app.services['products']
    try:
        return jsonify(ProductResponseSchema(many=True).dump(product_service.list_all_for_admin(session))), 200
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar produtos")


@products_bp.route('/', methods=['POST'])
@session_required()
def create_product(session):
    product_service = current_app.services['products']
    try:
        validated_data = ProductCreateSchema().load(request.get_json(silent=True) or {})
        new_product = product_service.create_product(session, validated_data)
        return jsonify(ProductResponseSchema().dump(new_product)), 201
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except ValueError as e:
        return jsonify({"error_code": "INVALID_PRICE", "message": str(e)}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "cadastrar produto")
    except Exception as e:
        logging.error(f"상품 등록 중 오류 발생: {e}", exc_info=True)
        return jsonify({"error_code": "PRODUCT_CREATION_FAILED", "message": "Erro ao cadastrar produto."}), 500


@products_bp.route('/<string:product_id>', methods=['GET'])
@session_required()
def get_product(product_id: str, session):
    product_service = current_app.services['products']
    try:
        return jsonify(ProductResponseSchema().dump(product_service.get_product_detail(product_id))), 200
    except FileNotFoundError as e:
        return jsonify({"error_code": "PRODUCT_NOT_FOUND", "message": str(e)}), 404
    except GoogleAPICallError as e:
        return backend_error_response(e, "carregar produto")


@products_bp.route('/<string:product_id>/toggle-active', methods=['POST'])
@session_required()
def toggle_product(product_id: str, session):
    product_service = current_app.services['products']
    try:
        return jsonify(ProductResponseSchema().dump(product_service.toggle_active(session, product_id))), 200
    except FileNotFoundError as e:
        return jsonify({"error_code": "PRODUCT_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except GoogleAPICallError as e:
        return backend_error_response(e, "atualizar produto")


@products_bp.route('/<string:product_id>/purchase', methods=['POST'])
@session_required()
def quote_purchase(product_id: str, session):
    """구매 시뮬레이션: 합계만 계산하고 아무것도 저장하지 않습니다."""
    product_service = current_app.services['products']
    try:
        data = PurchaseQuoteSchema().load(request.get_json(silent=True) or {})
        quote = product_service.quote_purchase(product_id, data['quantity'])
        return jsonify(PurchaseQuoteResponseSchema().dump(quote)), 200
    except ValidationError as err:
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400
    except FileNotFoundError as e:
        return jsonify({"error_code": "PRODUCT_NOT_FOUND", "message": str(e)}), 404
    except SoldOutError as e:
        return jsonify({"error_code": "SOLD_OUT", "message": str(e)}), 409
    except ValueError as e:
        return jsonify({"error_code": "INVALID_PURCHASE", "message": str(e)}), 400
    except GoogleAPICallError as e:
        return backend_error_response(e, "processar compra")


@products_bp.route('/<string:product_id>', methods=['DELETE'])
@session_required()
def delete_product(product_id: str, session):
    product_service = current_app.services['products']
    try:
        product_service.delete_product(session, product_id)
        return Response(status=204)
    except FileNotFoundError as e:
        return jsonify({"error_code": "PRODUCT_NOT_FOUND", "message": str(e)}), 404
    except PermissionError as e:
        return jsonify({"error_code": "FORBIDDEN", "message": str(e)}), 403
    except GoogleAPICallError as e:
        return backend_error_response(e, "excluir produto")
