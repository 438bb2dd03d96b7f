"""
模块加载器
负责扫描业务模块目录，导入模块清单并调用其 setup 完成注册

约定：
- 模块目录: modules/{module_id}/
- 清单文件: modules/{module_id}/{module_id}_manifest.py
- 清单需提供 setup(registry, ctx)，在其中构造能力闭包并调用 registry.register
"""

import importlib
import importlib.util
import sys
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .config import Settings, get_settings
from .errors import ModuleLoadException
from .events import EventBus, event_bus
from .registry import ModuleRegistry

logger = logging.getLogger(__name__)


# 确保backend目录在sys.path中，以便模块可以导入core等包
_backend_path = str(Path(__file__).parent.parent.absolute())
if _backend_path not in sys.path:
    sys.path.insert(0, _backend_path)


@dataclass
class ModuleContext:
    """传给模块 setup 的运行上下文"""
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    event_bus: EventBus = field(default_factory=lambda: event_bus)
    backend_path: Path = field(default_factory=lambda: Path(_backend_path))


class ModuleLoader:
    """模块加载器"""

    def __init__(
        self,
        registry: ModuleRegistry,
        ctx: ModuleContext,
        modules_dir: Optional[str] = None
    ):
        self.registry = registry
        self.ctx = ctx
        self.loaded: List[str] = []
        # 允许显式指定目录，否则使用配置
        if modules_dir:
            self.modules_path = Path(modules_dir)
        else:
            self.modules_path = Path(_backend_path) / ctx.settings.modules_dir

    def scan_modules(self) -> List[str]:
        """扫描模块目录"""
        if not self.modules_path.exists():
            logger.warning(f"模块目录不存在: {self.modules_path}")
            return []

        module_ids = []
        for item in sorted(self.modules_path.iterdir()):
            if item.is_dir() and not item.name.startswith("_"):
                # 按命名规范，清单文件为 {module_id}_manifest.py
                manifest_file = item / f"{item.name}_manifest.py"
                if manifest_file.exists():
                    module_ids.append(item.name)
                    logger.debug(f"发现模块: {item.name}")

        return module_ids

    def _import_module(self, module_name: str, file_path: Path) -> Any:
        """导入清单（优先使用标准导入，失败则回退到路径加载），失败时抛出原始异常"""
        try:
            return importlib.import_module(module_name)
        except ImportError:
            if not file_path.exists():
                raise

        spec = importlib.util.spec_from_file_location(module_name, file_path)
        if spec is None or spec.loader is None:
            raise ImportError(f"无法加载清单文件: {file_path}")
        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception:
            sys.modules.pop(module_name, None)
            raise
        return module

    def load_module(self, module_id: str):
        """
        加载单个模块

        清单无法导入或缺少 setup 时抛出 ModuleLoadException；setup 内的注册异常直接抛出
        """
        if module_id in self.loaded:
            logger.warning(f"模块已加载: {module_id}")
            return

        manifest_file = self.modules_path / module_id / f"{module_id}_manifest.py"
        module_name = f"modules.{module_id}.{module_id}_manifest"

        try:
            module = self._import_module(module_name, manifest_file)
        except Exception as e:
            logger.error(f"导入模块清单失败 {module_id}: {e}", exc_info=True)
            raise ModuleLoadException(module_id, f"{type(e).__name__}: {e}") from e

        setup = getattr(module, "setup", None)
        if not callable(setup):
            logger.error(f"清单文件缺少 setup 函数: {module_id}")
            raise ModuleLoadException(module_id, "缺少 setup 函数")

        before = len(self.registry)
        setup(self.registry, self.ctx)
        self.loaded.append(module_id)
        logger.debug(f"模块加载成功: {module_id}（注册 {len(self.registry) - before} 个描述）")

    def load_all(self) -> List[str]:
        """按名称顺序加载所有模块，返回已加载的模块目录"""
        for module_id in self.scan_modules():
            self.load_module(module_id)
        return list(self.loaded)


def create_module_context(bus: Optional[EventBus] = None) -> ModuleContext:
    """使用全局配置与会话工厂创建模块上下文"""
    from .database import async_session
    return ModuleContext(
        settings=get_settings(),
        session_factory=async_session,
        event_bus=bus or event_bus
    )
