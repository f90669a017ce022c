"""서비스 레이어 패키지 초기화 모듈입니다."""

from app.services import (
    auth_service,
    task_service,
    task_query_service,
    task_ai_service,
    subscription_service,
)
