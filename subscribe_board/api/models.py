from typing import Any, List, Literal, Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: Literal["OK"]
    service: Literal["subscribe-board"]
    version: str
    timestamp: str # ISO 格式
    configured: bool # BOT_TOKEN / CHAT_ID 是否齐全
    time_zone: str
    active_lanes: List[str] # 正在处理事件的 actor key

class WebhookResponse(BaseModel):
    success: bool
    result: Any = None # 聚合结果或跳过原因
    error: Optional[str] = None
