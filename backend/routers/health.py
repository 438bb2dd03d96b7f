"""
健康检查路由
提供系统健康状态和探针端点
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text

from core.config import get_settings
from core.database import engine
from core.registry import get_module_registry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["健康检查"])


class HealthStatus(BaseModel):
    """健康状态响应"""
    status: str  # healthy, degraded, unhealthy
    version: str
    timestamp: str
    uptime_seconds: float
    components: dict


class ComponentHealth(BaseModel):
    """组件健康状态"""
    status: str
    message: Optional[str] = None
    latency_ms: Optional[float] = None


# 系统启动时间
_start_time = datetime.now(timezone.utc)


async def check_database() -> ComponentHealth:
    """检查数据库连接"""
    start = time.time()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error(f"数据库健康检查失败: {e}")
        return ComponentHealth(status="unhealthy", message=f"数据库连接失败: {e}")

    latency = (time.time() - start) * 1000
    return ComponentHealth(status="healthy", message="数据库连接正常", latency_ms=round(latency, 2))


def check_registry() -> ComponentHealth:
    """检查模块注册表"""
    registry = get_module_registry()
    if registry is None:
        return ComponentHealth(status="unhealthy", message="模块注册表未初始化")
    if not registry.sealed:
        return ComponentHealth(status="degraded", message="模块注册尚未完成")
    return ComponentHealth(status="healthy", message=f"已注册 {len(registry)} 个模块")


@router.get("/health", response_model=HealthStatus)
async def health_check():
    """
    健康检查端点

    数据库或注册表不可用时整体不健康
    """
    db_health = await check_database()
    registry_health = check_registry()

    statuses = [db_health.status, registry_health.status]
    if "unhealthy" in statuses:
        overall_status = "unhealthy"
    elif "degraded" in statuses:
        overall_status = "degraded"
    else:
        overall_status = "healthy"

    now = datetime.now(timezone.utc)
    return HealthStatus(
        status=overall_status,
        version=get_settings().app_version,
        timestamp=now.isoformat(),
        uptime_seconds=round((now - _start_time).total_seconds(), 2),
        components={
            "database": db_health.model_dump(),
            "registry": registry_health.model_dump()
        }
    )


@router.get("/health/live")
async def liveness_probe():
    """存活探针"""
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_probe():
    """就绪探针：注册完成且数据库可用"""
    db_health = await check_database()
    registry_health = check_registry()
    if db_health.status == "unhealthy" or registry_health.status != "healthy":
        return JSONResponse(
            status_code=503,
            content={"status": "not_ready", "reason": db_health.message if db_health.status == "unhealthy" else registry_health.message}
        )
    return {"status": "ready"}
