from __future__ import annotations

from pathlib import Path
from typing import Optional


class LprojError(RuntimeError):
    pass


class ConfigError(LprojError):
    """配置文件错误（启动阶段给出友好提示）"""
    pass


class DirectoryReadError(LprojError):
    """列目录失败：扫描/加载时只记日志并跳过该目录，不中断整体流程。"""

    def __init__(self, path: Path, cause: Optional[BaseException] = None):
        self.path = path
        self.cause = cause
        super().__init__(f"无法读取目录：{path}（{cause}）")


class FileWriteError(LprojError):
    """保存某个语言文件失败：按次上抛，调用方可重试，不影响其它语言/资源。"""

    def __init__(self, path: Optional[Path], message: str):
        self.path = path
        super().__init__(message)


class OracleFailure(LprojError):
    """翻译服务调用失败：整批中止，已写入的翻译保留。"""

    def __init__(
        self,
        message: str,
        *,
        key: Optional[str] = None,
        language: Optional[str] = None,
        committed: int = 0,
    ):
        self.key = key
        self.language = language
        self.committed = committed
        super().__init__(message)
