# petloc/core/errors.py
import logging
from flask import Flask, jsonify
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException
from google.api_core import exceptions as gcp_exceptions

PERMISSION_HINT = "Verifique as regras de segurança / permissões do Firestore."


def backend_error_response(err: gcp_exceptions.GoogleAPICallError, action: str):
    """
    Firestore 호출 실패를 사용자에게 보여줄 응답으로 변환합니다.
    - 권한 오류: 원문 메시지 + 보안 규칙 확인 안내
    - 그 외: 일시적 오류로 간주 (자동 재시도 없음, 사용자가 다시 시도)
    """
    if isinstance(err, gcp_exceptions.PermissionDenied):
        logging.warning(f"{action} 권한 오류: {err}")
        return jsonify({"error_code": "PERMISSION_DENIED", "message": f"{err.message} {PERMISSION_HINT}"}), 403
    if isinstance(err, gcp_exceptions.NotFound):
        return jsonify({"error_code": "NOT_FOUND", "message": err.message}), 404

    logging.error(f"{action} 중 백엔드 오류: {err}", exc_info=True)
    return jsonify({"error_code": "BACKEND_UNAVAILABLE",
                    "message": f"Erro ao {action}. Tente novamente."}), 503


def register_error_handlers(app: Flask):
    """라우트에서 처리되지 않은 예외를 위한 전역 에러 핸들러를 등록합니다."""

    @app.errorhandler(ValidationError)
    def handle_marshmallow_validation(err):
        return jsonify({"error_code": "VALIDATION_ERROR", "details": err.messages}), 400

    @app.errorhandler(gcp_exceptions.GoogleAPICallError)
    def handle_backend_error(err):
        return backend_error_response(err, "acessar o banco de dados")

    @app.errorhandler(HTTPException)
    def handle_http_exception(err):
        error_code = (err.name or "HTTP_ERROR").upper().replace(" ", "_")
        return jsonify({"error_code": error_code, "message": err.description}), err.code

    @app.errorhandler(Exception)
    def handle_generic_exception(err):
        # 다른 핸들러에서 처리되지 않은 모든 예외를 여기서 처리
        logging.error(f"An unhandled exception occurred: {err}", exc_info=True)
        return jsonify({"error_code": "INTERNAL_SERVER_ERROR",
                        "message": "Ocorreu um erro inesperado no servidor."}), 500
