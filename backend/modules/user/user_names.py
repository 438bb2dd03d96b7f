"""
随机昵称词库
启动时从文本文件加载，为未填写昵称的用户提供默认值
"""

import logging
import random
from pathlib import Path
from typing import List, Optional

from core.errors import BusinessException

logger = logging.getLogger(__name__)


class NicknamePool:
    """昵称词库"""

    def __init__(self, names: List[str], rng: Optional[random.Random] = None):
        self.names = [name.strip() for name in names if name.strip()]
        # 独立随机源，每次启动序列不同
        self._rng = rng or random.Random()

    @classmethod
    def load(cls, path: Path) -> "NicknamePool":
        """从 UTF-8 文本加载，每行一个昵称，忽略空行"""
        content = Path(path).read_text(encoding="utf-8")
        pool = cls(content.strip().splitlines())
        logger.debug(f"加载昵称词库: {len(pool)} 个 ({path})")
        return pool

    def __len__(self) -> int:
        return len(self.names)

    def random_name(self) -> str:
        if not self.names:
            raise BusinessException(message="昵称词库为空")
        return self._rng.choice(self.names)


_nickname_pool: Optional[NicknamePool] = None


def init_nickname_pool(path: Path) -> NicknamePool:
    """加载全局昵称词库"""
    global _nickname_pool
    _nickname_pool = NicknamePool.load(path)
    return _nickname_pool


def get_nickname_pool() -> Optional[NicknamePool]:
    return _nickname_pool
