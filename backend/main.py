"""
IM Kernel - 主入口
基于FastAPI的业务模块注册与数据源适配服务

启动顺序：
- 创建模块注册表，加载业务模块并封存
- 挂载模块路由与数据源回调路由
- lifespan 中初始化数据库
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import get_settings
from core.database import init_db, close_db
from core.events import event_bus, Events, Event
from core.errors import ErrorCode, error_response, register_exception_handlers
from core.loader import ModuleLoader, create_module_context
from core.registry import init_registry

# 配置日志
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# 减少第三方库的日志输出
logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # ==================== 启动阶段 ====================
    logger.info(f"🚀 正在启动 {settings.app_name} v{settings.app_version}...")

    await init_db()
    logger.info("✅ 数据库初始化完成")

    await event_bus.publish(Event(
        name=Events.SYSTEM_STARTUP,
        source="kernel",
        data={"modules": [m.name for m in registry.modules]}
    ))
    logger.info(f"🎉 {settings.app_name} 启动完成!")

    yield

    # ==================== 关闭阶段 ====================
    logger.info("🛑 系统关闭中...")
    await event_bus.publish(Event(name=Events.SYSTEM_SHUTDOWN, source="kernel"))
    await close_db()
    logger.info("👋 系统已关闭")


# ==================== 创建应用 ====================
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="即时通讯业务模块注册与数据源适配",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # 生产环境应限制为具体域名
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


# ==================== 异常处理器 ====================
register_exception_handlers(app)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """全局异常捕获"""
    logger.error(f"未处理异常: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content=error_response(ErrorCode.INTERNAL_ERROR))


# ==================== 模块注册 ====================
# 在导入期完成注册与封存，之后的请求只读注册表；任一模块加载失败即中止启动
registry = init_registry(event_bus)
loader = ModuleLoader(registry, create_module_context(event_bus))
loaded = loader.load_all()
registry.seal()
registry.mount(app)
logger.info(f"✅ 已加载 {len(loaded)} 个模块目录，注册 {len(registry)} 个业务模块")


# ==================== 注册系统路由 ====================
from routers import datasource, health

app.include_router(datasource.router, prefix=settings.api_prefix)
app.include_router(health.router)


@app.get("/api", include_in_schema=False)
async def api_info():
    """API 信息"""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/api/docs",
        "health": "/health",
        "modules": [
            {"name": m.name, "version": m.version}
            for m in registry.modules
        ]
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug
    )
