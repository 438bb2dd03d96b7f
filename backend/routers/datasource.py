"""
数据源回调路由
消息核心通过 cmd 分发回调业务模块注册的数据源能力
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Type, TypeVar

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ValidationError

from core.deps import get_registry
from core.errors import ValidationException, success_response
from core.registry import ModuleRegistry
from schemas.datasource import (
    ChannelQuery,
    DatasourceRequest,
    DevicesQuery,
    FriendsQuery,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["数据源"])

T = TypeVar("T", bound=BaseModel)


def _parse(model: Type[T], data: Dict[str, Any]) -> T:
    """校验命令参数"""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ValidationException(errors=[
            {"field": ".".join(str(loc) for loc in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ])


# ==================== 命令处理 ====================

async def _system_uids(registry: ModuleRegistry, data: Dict[str, Any]):
    return await registry.system_uids()


async def _whitelist(registry: ModuleRegistry, data: Dict[str, Any]):
    query = _parse(ChannelQuery, data)
    return await registry.whitelist(query.channel_id, query.channel_type)


async def _channel_info(registry: ModuleRegistry, data: Dict[str, Any]):
    query = _parse(ChannelQuery, data)
    channel = await registry.channel_get(query.channel_id, query.channel_type, query.login_uid)
    return channel.model_dump()


async def _devices(registry: ModuleRegistry, data: Dict[str, Any]):
    query = _parse(DevicesQuery, data)
    return [device.model_dump() for device in await registry.get_devices(query.ids)]


async def _friends(registry: ModuleRegistry, data: Dict[str, Any]):
    query = _parse(FriendsQuery, data)
    return [friend.model_dump() for friend in await registry.get_friends(query.uid)]


CommandHandler = Callable[[ModuleRegistry, Dict[str, Any]], Awaitable[Any]]

COMMANDS: Dict[str, CommandHandler] = {
    "getSystemUIDs": _system_uids,
    "getWhitelist": _whitelist,
    "getChannelInfo": _channel_info,
    "getDevices": _devices,
    "getFriends": _friends,
}


@router.post("/datasource", response_model=dict, summary="数据源回调")
async def datasource(
    req: DatasourceRequest,
    registry: ModuleRegistry = Depends(get_registry)
):
    handler = COMMANDS.get(req.cmd)
    if handler is None:
        logger.warning(f"不支持的数据源命令: {req.cmd}")
        raise ValidationException(f"不支持的命令: {req.cmd}")
    return success_response(data=await handler(registry, req.data))


@router.get("/modules", response_model=dict, summary="已注册模块")
async def list_modules(registry: ModuleRegistry = Depends(get_registry)):
    return success_response(data=[info.model_dump() for info in registry.get_module_info()])
