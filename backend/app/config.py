"""환경 변수 기반 애플리케이션 설정을 중앙에서 관리합니다."""

from pydantic_settings import BaseSettings
from typing import List
from pathlib import Path


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./taskflow.db"
    SECRET_KEY: str = "change-me-to-a-random-secret-key"
    DEBUG: bool = True
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]
    LOG_LEVEL: str = "INFO"

    # JWT
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 480

    # Task list pagination (bucket별 기본 페이지 창)
    TASK_DEFAULT_PAGE: int = 1
    TASK_DEFAULT_PAGE_LIMIT: int = 2
    TASK_DEFAULT_KANBAN_ORDER: int = 1000
    TASK_MAX_PAGE: int = 100000
    TASK_MAX_PAGE_LIMIT: int = 100
    # 부모 태스크 연결 시 조상 탐색 최대 깊이
    TASK_PARENT_MAX_DEPTH: int = 32

    # AI Model Settings
    OPENAI_API_KEY: str = "your_openai_api_key"
    AI_BASE_URL: str = "https://api.openai.com/v1"
    AI_TASK_MODEL: str = "gpt-4o-mini"
    AI_TIMEOUT_SECONDS: float = 30.0
    AI_FEATURES_ENABLED: bool = True

    # Billing (Stripe)
    STRIPE_SECRET_KEY: str = "sk_test_change_me"
    FRONTEND_URL: str = "http://localhost:3000"
    SUBSCRIPTION_INVOICE_DAYS_UNTIL_DUE: int = 20
    # 클라이언트가 보내는 encryptedData(AES 패스프레이즈 형식) 복호화 키
    API_ENCRYPTION_KEY: str = "your-secret-key"

    class Config:
        # 실행 cwd와 무관하게 backend/.env를 로드한다.
        env_file = str(Path(__file__).resolve().parents[1] / ".env")


settings = Settings()
