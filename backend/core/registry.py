"""
模块注册表
收集各业务模块的描述，对宿主应用呈现统一的路由、SQL 资源、接口文档与数据源能力

生命周期：
1. 注册阶段：启动时由各模块的 setup 调用 register
2. 封存：宿主调用 seal()，此后拒绝任何注册
3. 查询阶段：消息核心通过聚合查询回调各模块，注册表只读，无需加锁
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from fastapi import APIRouter, FastAPI

from .config import get_settings
from .datasource import (
    BusinessDataSource,
    IdentitySource,
    IMDatasourceType,
    NOT_APPLICABLE,
    Visibility,
)
from .errors import (
    CapabilityConflictException,
    CapabilityNotRegisteredException,
    CapabilityUndeclaredException,
    ChannelNotFoundException,
    DuplicateRegistrationException,
    RegistryNotSealedException,
    RegistrySealedException,
)
from .events import EventBus, Events, event_bus
from schemas.datasource import ChannelDescriptor, DeviceDescriptor, FriendDescriptor, ModuleInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SQLAssets:
    """模块 SQL 资源目录，注册表只汇总不执行"""
    directory: Path

    def files(self) -> List[Path]:
        """按文件名顺序列出 SQL 文件"""
        if not self.directory.is_dir():
            return []
        return sorted(self.directory.glob("*.sql"), key=lambda p: p.name)

    def read_all(self) -> List[Tuple[str, str]]:
        """读取全部 SQL 文件内容"""
        return [(f.name, f.read_text(encoding="utf-8")) for f in self.files()]


@dataclass(frozen=True)
class ModuleDescriptor:
    """业务模块描述（启动时创建，之后不可变）"""
    name: str                                       # 唯一标识
    api_router_factory: Callable[[], APIRouter]     # 路由工厂
    version: str = "1.0.0"
    description: str = ""
    router_prefix: str = ""                         # 为空时使用 settings.api_prefix

    # 模块自有资源，原样汇总
    sql_assets: Optional[SQLAssets] = None
    api_document: Optional[str] = None

    # 数据源能力包
    identity_source: Optional[IdentitySource] = None
    business_data_source: Optional[BusinessDataSource] = None


def _capability_names(bundle, names: Tuple[str, ...]) -> Optional[List[str]]:
    if bundle is None:
        return None
    return [name for name in names if getattr(bundle, name) is not None]


class ModuleRegistry:
    """
    模块注册表

    - 模块名唯一，按注册顺序保存
    - 同一频道类型的可见性只能由一个模块声明
    - 设备、好友能力各自只能由一个模块提供
    """

    def __init__(self, bus: Optional[EventBus] = None):
        self._modules: Dict[str, ModuleDescriptor] = {}
        self._sealed = False
        self._bus = bus or event_bus

        # 能力归属
        self._whitelist_owners: Dict[int, str] = {}
        self._device_owner: Optional[str] = None
        self._friend_owner: Optional[str] = None

    # ==================== 注册阶段 ====================

    def register(self, descriptor: ModuleDescriptor):
        """注册模块，失败时注册表保持原状"""
        if self._sealed:
            logger.error(f"注册表已封存，拒绝注册模块: {descriptor.name}")
            raise RegistrySealedException(descriptor.name)

        if descriptor.name in self._modules:
            logger.error(f"模块名冲突: {descriptor.name} 已注册")
            raise DuplicateRegistrationException(descriptor.name)

        self._check_conflicts(descriptor)

        self._modules[descriptor.name] = descriptor
        self._claim_capabilities(descriptor)

        logger.debug(f"模块注册成功: {descriptor.name} v{descriptor.version}")
        self._bus.emit(Events.MODULE_REGISTERED, "kernel", {"module": descriptor.name})

    def _check_conflicts(self, descriptor: ModuleDescriptor):
        identity = descriptor.identity_source
        if identity is not None:
            for channel_type in sorted(identity.whitelist_channel_types):
                owner = self._whitelist_owners.get(channel_type)
                if owner is not None:
                    raise CapabilityConflictException(
                        f"whitelist[{channel_type}]", owner, descriptor.name
                    )
            if identity.has_data is not None and not identity.whitelist_channel_types:
                logger.error(f"模块 {descriptor.name} 提供 has_data 但未声明 whitelist_channel_types")
                raise CapabilityUndeclaredException(descriptor.name)

        business = descriptor.business_data_source
        if business is not None:
            if business.get_devices is not None and self._device_owner is not None:
                raise CapabilityConflictException("get_devices", self._device_owner, descriptor.name)
            if business.get_friends is not None and self._friend_owner is not None:
                raise CapabilityConflictException("get_friends", self._friend_owner, descriptor.name)

    def _claim_capabilities(self, descriptor: ModuleDescriptor):
        identity = descriptor.identity_source
        if identity is not None:
            for channel_type in identity.whitelist_channel_types:
                self._whitelist_owners[channel_type] = descriptor.name

        business = descriptor.business_data_source
        if business is not None:
            if business.get_devices is not None:
                self._device_owner = descriptor.name
            if business.get_friends is not None:
                self._friend_owner = descriptor.name

    def seal(self):
        """封存注册表，之后只接受查询"""
        if self._sealed:
            return
        self._sealed = True
        logger.info(f"模块注册完成，共 {len(self._modules)} 个: {', '.join(self._modules)}")
        self._bus.emit(Events.REGISTRY_SEALED, "kernel", {"modules": list(self._modules)})

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _ensure_sealed(self):
        if not self._sealed:
            raise RegistryNotSealedException()

    # ==================== 模块信息 ====================

    @property
    def modules(self) -> List[ModuleDescriptor]:
        """按注册顺序返回所有模块"""
        return list(self._modules.values())

    def get(self, name: str) -> Optional[ModuleDescriptor]:
        return self._modules.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._modules

    def __len__(self) -> int:
        return len(self._modules)

    def _prefix_of(self, descriptor: ModuleDescriptor) -> str:
        return descriptor.router_prefix or get_settings().api_prefix

    def get_module_info(self) -> List[ModuleInfo]:
        """获取所有模块的公开信息"""
        return [
            ModuleInfo(
                name=d.name,
                version=d.version,
                description=d.description,
                router_prefix=self._prefix_of(d),
                has_sql=d.sql_assets is not None,
                has_api_document=d.api_document is not None,
                identity_source=_capability_names(
                    d.identity_source, ("system_uids", "has_data", "whitelist")
                ),
                business_data_source=_capability_names(
                    d.business_data_source, ("channel_get", "get_devices", "get_friends")
                ),
            )
            for d in self._modules.values()
        ]

    # ==================== 聚合资源 ====================

    def mount(self, app: FastAPI) -> int:
        """调用每个模块的路由工厂并挂载到应用"""
        self._ensure_sealed()
        for descriptor in self._modules.values():
            router = descriptor.api_router_factory()
            prefix = self._prefix_of(descriptor)
            app.include_router(router, prefix=prefix, tags=[descriptor.name])
            logger.debug(f"注册路由成功: {descriptor.name} -> {prefix}")
        return len(self._modules)

    def sql_assets(self) -> List[Tuple[str, SQLAssets]]:
        """按注册顺序汇总 SQL 资源"""
        return [(d.name, d.sql_assets) for d in self._modules.values() if d.sql_assets is not None]

    def api_documents(self) -> Dict[str, str]:
        """按注册顺序汇总接口文档"""
        return {d.name: d.api_document for d in self._modules.values() if d.api_document is not None}

    # ==================== 聚合查询 ====================

    async def system_uids(self) -> List[str]:
        """
        汇总所有模块的系统账号

        按注册顺序拼接；任一模块失败即中止，不返回部分结果
        """
        self._ensure_sealed()
        uids: List[str] = []
        for descriptor in self._modules.values():
            source = descriptor.identity_source
            if source is None or source.system_uids is None:
                continue
            uids.extend(await source.system_uids())
        return uids

    async def visibility(self, channel_id: str, channel_type: int) -> Visibility:
        """
        查询频道可见性

        只询问声明了该频道类型的模块；第一个返回 WHITELIST 的模块胜出，其白名单即最终结果；无人声明则不受限
        """
        self._ensure_sealed()
        for descriptor in self._modules.values():
            source = descriptor.identity_source
            if source is None or source.has_data is None:
                continue
            if channel_type not in source.whitelist_channel_types:
                continue
            if source.has_data(channel_id, channel_type) != IMDatasourceType.WHITELIST:
                continue
            if source.whitelist is None:
                raise CapabilityNotRegisteredException("whitelist", descriptor.name)
            uids = await source.whitelist(channel_id, channel_type)
            return Visibility(type=IMDatasourceType.WHITELIST, uids=list(uids), module=descriptor.name)
        return Visibility()

    async def whitelist(self, channel_id: str, channel_type: int) -> List[str]:
        """频道白名单，不受限的频道返回空列表"""
        return (await self.visibility(channel_id, channel_type)).uids

    async def channel_get(self, channel_id: str, channel_type: int, login_uid: str) -> ChannelDescriptor:
        """
        获取频道描述

        第一个返回具体描述的模块胜出；全部不处理时抛出 ChannelNotFoundException；
        模块异常直接向上抛出，不会继续尝试下一个模块
        """
        self._ensure_sealed()
        for descriptor in self._modules.values():
            source = descriptor.business_data_source
            if source is None or source.channel_get is None:
                continue
            result = await source.channel_get(channel_id, channel_type, login_uid)
            if result is NOT_APPLICABLE:
                continue
            return result
        raise ChannelNotFoundException(channel_id, channel_type)

    async def get_devices(self, ids: List[int]) -> List[DeviceDescriptor]:
        """按设备ID查询设备"""
        self._ensure_sealed()
        if self._device_owner is None:
            raise CapabilityNotRegisteredException("get_devices")
        source = self._modules[self._device_owner].business_data_source
        return await source.get_devices(ids)

    async def get_friends(self, uid: str) -> List[FriendDescriptor]:
        """查询用户的好友列表（含单向好友）"""
        self._ensure_sealed()
        if self._friend_owner is None:
            raise CapabilityNotRegisteredException("get_friends")
        source = self._modules[self._friend_owner].business_data_source
        return await source.get_friends(uid)


# 全局注册表实例（在 main.py 中初始化，仅供宿主应用的路由依赖使用）
module_registry: Optional[ModuleRegistry] = None


def init_registry(bus: Optional[EventBus] = None) -> ModuleRegistry:
    """初始化模块注册表"""
    global module_registry
    module_registry = ModuleRegistry(bus)
    return module_registry


def get_module_registry() -> Optional[ModuleRegistry]:
    """获取模块注册表实例"""
    return module_registry
