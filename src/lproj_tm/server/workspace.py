from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Optional, Tuple

from ..config import LprojConfig
from ..oracle.chat import TranslationOracle
from ..store import LocalizationStore, discover_stores
from .models import ProgressResponse, ResourceInfo, TaskProgress, TaskStatus


OracleFactory = Callable[[], TranslationOracle]


@dataclass
class Workspace:
    """服务端持有的内存状态：当前 root 下的全部 store + 每个 store 一把锁 + 翻译进度。"""

    cfg: LprojConfig
    oracle_factory: OracleFactory
    root: Path = field(init=False)
    stores: Dict[str, LocalizationStore] = field(default_factory=dict)
    progress: Dict[Tuple[str, str], ProgressResponse] = field(default_factory=dict)
    _locks: Dict[str, asyncio.Lock] = field(default_factory=dict)
    _oracle: Optional[TranslationOracle] = None

    def __post_init__(self) -> None:
        self.root = self.cfg.lang_root

    def scan(self, root: Optional[Path] = None) -> None:
        if root is not None:
            self.root = Path(root).expanduser().resolve()
        self.stores = discover_stores(self.root, source_locales=self.cfg.source_locales)
        self.progress.clear()
        self._locks.clear()

    def lock_for(self, name: str) -> asyncio.Lock:
        if name not in self._locks:
            self._locks[name] = asyncio.Lock()
        return self._locks[name]

    def is_busy(self, name: str) -> bool:
        # 只读：同步路由跑在线程池里，不在这里创建锁
        lock = self._locks.get(name)
        return lock is not None and lock.locked()

    def oracle(self) -> TranslationOracle:
        # 第一次翻译时才创建：没配 API Key 也能浏览/保存
        if self._oracle is None:
            self._oracle = self.oracle_factory()
        return self._oracle

    def progress_for(self, name: str, lang: str) -> ProgressResponse:
        k = (name, lang)
        if k not in self.progress:
            self.progress[k] = ProgressResponse(resource=name, language=lang)
        return self.progress[k]

    @staticmethod
    def resource_info(store: LocalizationStore) -> ResourceInfo:
        return ResourceInfo(
            name=store.name,
            key_count=len(store.key_order),
            languages=store.languages,
            encoding=store.encoding.value,
            has_bom=store.has_bom,
            missing_by_language={lang: len(store.missing_keys(lang)) for lang in store.languages},
        )


def reset_progress(p: ProgressResponse, status: TaskStatus) -> None:
    p.status = status
    p.progress = TaskProgress()
    p.error = None
