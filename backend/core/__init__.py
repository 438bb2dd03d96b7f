"""
IM Kernel 核心模块
提供模块注册与数据源适配的基础设施

导出列表：
- 配置管理: get_settings, Settings
- 数据库: Base, get_db, async_session
- 事件系统: event_bus, Events, Event
- 数据源能力: ChannelType, IMDatasourceType, NOT_APPLICABLE, IdentitySource, BusinessDataSource
- 模块注册: ModuleDescriptor, ModuleRegistry, init_registry, get_module_registry
- 模块加载: ModuleLoader, ModuleContext
- 错误处理: ErrorCode, AppException, success_response, error_response
"""

# 配置管理
from .config import get_settings, Settings, reload_settings

# 数据库
from .database import Base, get_db, async_session, init_db, close_db

# 事件系统
from .events import event_bus, Events, Event, EventBus

# 数据源能力
from .datasource import (
    ChannelType,
    IMDatasourceType,
    NotApplicable,
    NOT_APPLICABLE,
    IdentitySource,
    BusinessDataSource,
    Visibility,
    upstream_guard
)

# 模块注册
from .registry import (
    ModuleDescriptor,
    ModuleRegistry,
    SQLAssets,
    init_registry,
    get_module_registry
)

# 模块加载
from .loader import ModuleLoader, ModuleContext, create_module_context

# 错误处理
from .errors import (
    ErrorCode,
    AppException,
    ValidationException,
    NotFoundException,
    BusinessException,
    ChannelNotFoundException,
    DataIntegrityException,
    DuplicateRegistrationException,
    CapabilityNotRegisteredException,
    CapabilityConflictException,
    CapabilityUndeclaredException,
    ModuleLoadException,
    RegistrySealedException,
    RegistryNotSealedException,
    UpstreamFailureException,
    success_response,
    error_response,
    register_exception_handlers
)


__all__ = [
    # 配置
    "get_settings",
    "Settings",
    "reload_settings",

    # 数据库
    "Base",
    "get_db",
    "async_session",
    "init_db",
    "close_db",

    # 事件
    "event_bus",
    "Events",
    "Event",
    "EventBus",

    # 数据源
    "ChannelType",
    "IMDatasourceType",
    "NotApplicable",
    "NOT_APPLICABLE",
    "IdentitySource",
    "BusinessDataSource",
    "Visibility",
    "upstream_guard",

    # 注册
    "ModuleDescriptor",
    "ModuleRegistry",
    "SQLAssets",
    "init_registry",
    "get_module_registry",

    # 加载
    "ModuleLoader",
    "ModuleContext",
    "create_module_context",

    # 错误
    "ErrorCode",
    "AppException",
    "ValidationException",
    "NotFoundException",
    "BusinessException",
    "ChannelNotFoundException",
    "DataIntegrityException",
    "DuplicateRegistrationException",
    "CapabilityNotRegisteredException",
    "CapabilityConflictException",
    "CapabilityUndeclaredException",
    "ModuleLoadException",
    "RegistrySealedException",
    "RegistryNotSealedException",
    "UpstreamFailureException",
    "success_response",
    "error_response",
    "register_exception_handlers",
]
