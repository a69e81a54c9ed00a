# petloc/__init__.py

# =====================================================================================
# 1. 환경 변수 로드 (가장 먼저 실행)
# =====================================================================================
from dotenv import load_dotenv
load_dotenv()

# =====================================================================================
# 2. 모듈 임포트 (Module Imports)
# =====================================================================================
import os
import logging
from flask import Flask, jsonify
from flask_jwt_extended import JWTManager
import firebase_admin
from firebase_admin import credentials, firestore

# - 설정 / 공통
from petloc.core.config import config_by_name
from petloc.core.errors import register_error_handlers

# - API 블루프린트
from petloc.api.auth.routes import auth_bp
from petloc.api.users.routes import users_bp
from petloc.api.pets.routes import pets_bp
from petloc.api.products.routes import products_bp
from petloc.api.missing_pets.routes import missing_pets_bp
from petloc.api.blog.routes import blog_bp
from petloc.api.chat.routes import chat_bp
from petloc.api.news.routes import news_bp

# - 서비스 모듈
from petloc.api.auth import services as auth_service_module
from petloc.api.users.services import UserAdminService
from petloc.api.pets.services import PetService
from petloc.api.products.services import ProductService
from petloc.api.missing_pets.services import MissingPetService
from petloc.api.blog.services import BlogService
from petloc.api.chat.services import ChatService
from petloc.api.news.services import NewsManagementService
from petloc.services.news_service import NewsService


def create_app(config_name=None, db=None, news_http=None):
    """
    Flask 애플리케이션 팩토리 함수.

    :param db: Firestore 클라이언트. 주어지면 Firebase 초기화를 건너뜁니다 (테스트/에뮬레이터).
    :param news_http: 뉴스 수집에 사용할 HTTP 세션 (기본: 호출마다 requests.get).
    """
    # =====================================================================================
    # 3. Flask 앱 생성 및 기본 설정
    # =====================================================================================
    config_name = config_name or os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    app.json.ensure_ascii = False

    # =====================================================================================
    # 4. 확장 기능 및 외부 서비스 초기화
    # =====================================================================================
    jwt = JWTManager(app)

    if db is None:
        if not firebase_admin._apps:
            cred_path = app.config['FIREBASE_CREDENTIALS_PATH']
            if not cred_path or not os.path.exists(cred_path):
                raise FileNotFoundError(f"Firebase 인증 파일을 찾을 수 없습니다: {cred_path}")
            cred = credentials.Certificate(cred_path)
            firebase_admin.initialize_app(cred)
        db = firestore.client()

    # =====================================================================================
    # 5. 서비스 인스턴스 생성 및 'app.services'에 저장 (의존성 주입)
    # =====================================================================================
    app.services = {}

    # - 인증 서비스 (앱 컨텍스트 필요)
    auth_service = auth_service_module.auth_service
    auth_service.init_app(app, db=db)
    app.services['auth'] = auth_service

    # - 도메인 서비스
    app.services['users'] = UserAdminService(db=db)
    app.services['pets'] = PetService(db=db)
    app.services['products'] = ProductService(db=db)
    app.services['missing_pets'] = MissingPetService(db=db)
    app.services['blog'] = BlogService(db=db)
    app.services['chat'] = ChatService(db=db, zone_name=app.config['APP_TIMEZONE'])

    # - 뉴스 (외부 API 집계 + 관리자 숨김 목록)
    news_service = NewsService(
        http=news_http,
        api_key=app.config['NEWS_API_KEY'],
        timeout=app.config['NEWS_REQUEST_TIMEOUT'],
    )
    app.services['news'] = NewsManagementService(news_service, db=db)
    logging.info("Domain services initialized successfully")

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return app.services['auth'].is_token_revoked(jwt_payload)

    @jwt.revoked_token_loader
    def revoked_token_callback(jwt_header, jwt_payload):
        return jsonify({"error_code": "TOKEN_REVOKED", "message": "Sessão encerrada. Faça login novamente."}), 401

    # =====================================================================================
    # 6. 블루프린트 등록
    # =====================================================================================
    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(users_bp, url_prefix='/api/users')
    app.register_blueprint(pets_bp, url_prefix='/api/pets')
    app.register_blueprint(products_bp, url_prefix='/api/products')
    app.register_blueprint(missing_pets_bp, url_prefix='/api/missing-pets')
    app.register_blueprint(blog_bp, url_prefix='/api/blog')
    app.register_blueprint(chat_bp, url_prefix='/api/chat')
    app.register_blueprint(news_bp, url_prefix='/api/news')

    # =====================================================================================
    # 7. 전역 에러 핸들러 설정
    # =====================================================================================
    register_error_handlers(app)

    # =====================================================================================
    # 8. 로깅 및 앱 반환
    # =====================================================================================
    if not app.debug:
        logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]')

    logging.info(f"Flask app created for '{config_name}' environment.")

    return app
