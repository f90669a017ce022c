"""Task 요청/응답 계약을 위한 Pydantic 스키마입니다.

API는 camelCase 필드명(startTime, assignedTo, parentId ...)을 사용하고, 내부 속성은 snake_case를 유지합니다.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Literal, Optional, Union
from datetime import datetime

TaskStatus = Literal["todo", "inprogress", "completed", "unscheduled"]

# INTEGER 컬럼(order, duration)에 저장 가능한 최대값
INT_COLUMN_MAX = 2_147_483_647


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TaskResourceIn(CamelModel):
    id: Optional[str] = None
    name: str
    type: str = ""
    category: Literal["file", "link", "note"]
    url: Optional[str] = None


class TaskResourceOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    name: str
    type: Optional[str] = ""
    category: str
    url: Optional[str] = None


class AssignedUserRef(CamelModel):
    id: str
    name: Optional[str] = None
    profile_pic: Optional[str] = None


class AssignedUserOut(CamelModel):
    id: str
    name: str
    profile_pic: Optional[str] = None


class TaskBase(CamelModel):
    title: str
    description: str = ""
    priority: Literal["high", "medium", "low"] = "medium"
    category: str = ""
    tags: List[str] = []
    completed: bool = False
    scheduled: bool = False
    status: Optional[TaskStatus] = None
    order: Optional[int] = Field(None, le=INT_COLUMN_MAX)
    date: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0, le=INT_COLUMN_MAX)


class TaskCreate(TaskBase):
    # 클라이언트에서 임시로 만든 id는 무시한다.
    id: Optional[str] = None
    parent_id: Optional[str] = None
    resources: List[TaskResourceIn] = []
    assigned_to: List[Union[str, AssignedUserRef]] = []


class TaskBatchCreate(CamelModel):
    tasks: List[TaskCreate]


class TaskUpdate(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Literal["high", "medium", "low"]] = None
    category: Optional[str] = None
    tags: Optional[List[str]] = None
    completed: Optional[bool] = None
    scheduled: Optional[bool] = None
    status: Optional[TaskStatus] = None
    order: Optional[int] = Field(None, le=INT_COLUMN_MAX)
    date: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0, le=INT_COLUMN_MAX)
    parent_id: Optional[str] = None
    resources: Optional[List[TaskResourceIn]] = None
    assigned_to: Optional[List[Union[str, AssignedUserRef]]] = None


class TaskOut(CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    user_id: str
    parent_id: Optional[str] = None
    title: str
    description: Optional[str] = ""
    priority: str
    category: Optional[str] = ""
    tags: List[str] = []
    completed: bool
    scheduled: bool
    status: Optional[str] = None
    order: Optional[int] = None
    date: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = None
    resources: List[TaskResourceOut] = []
    assigned_to: List[AssignedUserOut] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class PriorityUpdate(CamelModel):
    priority: Optional[str] = None


class StatusUpdate(CamelModel):
    status: Optional[str] = None


class KanbanMove(CamelModel):
    status: Optional[str] = None
    order: Optional[float] = Field(None, allow_inf_nan=False, le=INT_COLUMN_MAX)
    date: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0, le=INT_COLUMN_MAX)


class TimeWindowUpdate(CamelModel):
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[int] = Field(None, ge=0, le=INT_COLUMN_MAX)
    date: Optional[datetime] = None


class TaskGenerateRequest(CamelModel):
    prompt: str
    date: Optional[datetime] = None
