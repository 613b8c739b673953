from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

try:
    from openai import AsyncOpenAI
except Exception:  # pragma: no cover
    AsyncOpenAI = None


class OpenAIConfigError(RuntimeError):
    pass


def resolve_api_key(api_key: Optional[str] = None, *, env: str = "OPENAI_API_KEY") -> str:
    """显式传入优先，其次环境变量；都没有直接报错（不做交互、不落盘）。"""
    key = (api_key or "").strip() or os.getenv(env, "").strip()
    if key:
        return key
    raise OpenAIConfigError(
        "未检测到 OpenAI API Key。\n"
        "请先在终端配置环境变量：\n"
        f'  export {env}="sk-***"\n'
        "或在调用时显式传入 --api-key。"
    )


@dataclass(frozen=True)
class OpenAIClientFactory:
    timeout: float = 30.0
    api_key_env: str = "OPENAI_API_KEY"

    def create(self, api_key: Optional[str] = None) -> "AsyncOpenAI":  # type: ignore
        if not AsyncOpenAI:
            raise OpenAIConfigError("OpenAI SDK 未安装，请先 pip install openai>=1.0.0")
        key = resolve_api_key(api_key, env=self.api_key_env)
        return AsyncOpenAI(api_key=key, timeout=self.timeout)
