"""AI 태스크 생성 서비스입니다. 자유 텍스트 요청을 태스크 목록(JSON 배열)으로 변환합니다."""

import json
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from app.config import settings
from app.services.ai_client import AIClient

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a planning assistant. Turn the user's request into a list of tasks. "
    "Answer with a JSON array only, no prose. Each item is an object with the keys "
    "title, description, priority (high|medium|low), category, scheduled (boolean), "
    "date (ISO 8601 or null), startTime (ISO 8601 or null), endTime (ISO 8601 or null), "
    "duration (minutes or null) and tags (array of strings)."
)


def _parse_json_array(raw_text: str) -> Optional[List[Any]]:
    text = (raw_text or "").strip()
    if not text:
        return None

    try:
        parsed = json.loads(text)
        return parsed if isinstance(parsed, list) else None
    except ValueError:
        pass

    # Strip markdown code fences if present.
    fenced = re.search(r"```(?:json)?\s*(\[[\s\S]*?\])\s*```", text, re.IGNORECASE)
    if fenced:
        try:
            parsed = json.loads(fenced.group(1))
            if isinstance(parsed, list):
                return parsed
        except ValueError:
            pass

    start = text.find("[")
    end = text.rfind("]")
    if start >= 0 and end > start:
        try:
            parsed = json.loads(text[start:end + 1])
        except ValueError:
            return None
        return parsed if isinstance(parsed, list) else None
    return None


def _build_prompt(prompt: str, target_date: Optional[datetime]) -> str:
    day = (target_date or datetime.utcnow()).date().isoformat()
    return f"Target date: {day}\nRequest:\n{prompt.strip()}"


def generate_tasks(prompt: str, target_date: Optional[datetime], user_id: str) -> List[Dict[str, Any]]:
    if not settings.AI_FEATURES_ENABLED:
        raise HTTPException(status_code=503, detail="AI features are disabled")
    if not (prompt or "").strip():
        raise HTTPException(status_code=400, detail="Prompt is required")

    client = AIClient(user_id=user_id)
    raw = client.invoke(_build_prompt(prompt, target_date), SYSTEM_PROMPT)
    tasks = _parse_json_array(raw)
    if tasks is None or not all(isinstance(item, dict) for item in tasks):
        logger.warning("[ai] task generation returned a non-array payload for user %s", user_id)
        raise HTTPException(status_code=400, detail="AI response is not a valid task list")
    return tasks
