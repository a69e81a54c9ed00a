# petloc/core/config.py

import os # 환경 변수를 읽기 위해 사용합니다.
from datetime import timedelta


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    try:
        return int(value) if value else default
    except ValueError:
        return default


class Config:
    """모든 환경 설정의 기반이 되는 공통 설정 클래스입니다."""
    # API 토큰(Access/Refresh) 서명에 사용되는 키. 토큰 위변조를 방지합니다.
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY')
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=1)
    JWT_REFRESH_TOKEN_EXPIRES = timedelta(days=14)

    # 뉴스 검색 API 키. 없으면 해당 소스만 빈 결과를 반환합니다.
    NEWS_API_KEY = os.getenv('NEWS_API_KEY')
    NEWS_REQUEST_TIMEOUT = _int_env('NEWS_REQUEST_TIMEOUT', 10)

    # SSE 스트림 keep-alive 주기(초)
    LIVE_STREAM_HEARTBEAT = _int_env('LIVE_STREAM_HEARTBEAT', 15)

    # 채팅 날짜 구분('Hoje'/'Ontem')에 사용할 지역 timezone
    APP_TIMEZONE = os.getenv('APP_TIMEZONE', 'America/Sao_Paulo')

class DevelopmentConfig(Config):
    """개발 환경을 위한 설정 클래스입니다."""
    DEBUG = True
    # 개발용 Firebase 프로젝트의 서비스 계정 키 파일 경로
    FIREBASE_CREDENTIALS_PATH = os.getenv('DEV_FIREBASE_CREDENTIALS_PATH')

class TestingConfig(Config):
    """테스트 환경을 위한 설정 클래스입니다."""
    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = os.getenv('JWT_SECRET_KEY', 'petloc-testing-secret-key-000000000000')
    FIREBASE_CREDENTIALS_PATH = os.getenv('TEST_FIREBASE_CREDENTIALS_PATH')
    NEWS_API_KEY = 'test-news-key'
    LIVE_STREAM_HEARTBEAT = 1

class ProductionConfig(Config):
    """운영 환경을 위한 설정 클래스입니다."""
    DEBUG = False
    FIREBASE_CREDENTIALS_PATH = os.getenv('PROD_FIREBASE_CREDENTIALS_PATH')

# 문자열 키와 해당 환경의 설정 클래스를 매핑합니다.
# create_app에서 FLASK_ENV 값에 따라 적절한 설정을 선택하는 데 사용됩니다.
config_by_name = dict(
    development=DevelopmentConfig,
    testing=TestingConfig,
    production=ProductionConfig
)
