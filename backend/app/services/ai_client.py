"""OpenAI 호환 chat completions 호출을 감싸는 AI 클라이언트입니다. 태스크 생성 서비스가 사용합니다."""

from typing import Optional, List, Any
from app.config import settings


class AIClient:
    """태스크 생성용 chat 모델 클라이언트 (OpenAI 호환 API 직접 호출)"""

    def __init__(self, model_name: Optional[str] = None, user_id: Optional[str] = None):
        self.model_name = model_name or settings.AI_TASK_MODEL
        self.user_id = user_id or "system"
        self._client = None

    def _get_client(self):
        if self._client is None:
            try:
                from openai import OpenAI
            except ImportError:
                raise RuntimeError("openai is not installed.")
            self._client = OpenAI(
                api_key=settings.OPENAI_API_KEY,
                base_url=settings.AI_BASE_URL,
                timeout=settings.AI_TIMEOUT_SECONDS,
            )
        return self._client

    def _normalize_content(self, content: Any) -> str:
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            chunks: List[str] = []
            for part in content:
                if isinstance(part, dict) and part.get("type") == "text":
                    chunks.append(str(part.get("text", "")))
            return "".join(chunks)
        return str(content or "")

    def invoke(self, prompt: str, system_prompt: Optional[str] = None) -> str:
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})
        try:
            response = self._get_client().chat.completions.create(
                model=self.model_name,
                messages=messages,
                temperature=0.4,
                max_tokens=2048,
                user=self.user_id,
            )
        except Exception as exc:
            raise RuntimeError(f"AI model call failed ({self.model_name}): {exc}") from exc
        if not response.choices:
            return ""
        message = response.choices[0].message
        return self._normalize_content(message.content if message else "")
