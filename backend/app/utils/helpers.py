"""날짜/시간 입력 정규화를 위한 공용 헬퍼입니다."""

from datetime import date, datetime, time, timezone
from typing import Optional
from fastapi import HTTPException

END_OF_DAY = time(23, 59, 59, 999000)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_datetime_param(raw: Optional[str], field: str) -> Optional[datetime]:
    """쿼리 문자열의 날짜(YYYY-MM-DD) 또는 ISO datetime 값을 naive UTC datetime으로 변환한다."""
    if raw is None or str(raw).strip() == "":
        return None
    text = str(raw).strip()
    try:
        if len(text) == 10:
            return datetime.combine(date.fromisoformat(text), time.min)
        return to_naive_utc(datetime.fromisoformat(text.replace("Z", "+00:00")))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid date for '{field}': {text}")


def start_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), time.min)


def end_of_day(value: datetime) -> datetime:
    return datetime.combine(value.date(), END_OF_DAY)


def minutes_between(start: datetime, end: datetime) -> int:
    return max(int((end - start).total_seconds() // 60), 0)
