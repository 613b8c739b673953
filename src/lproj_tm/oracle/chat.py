from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol, Sequence, Union

from ..errors import OracleFailure
from .client import OpenAIClientFactory
from .models import OpenAIModel, model_name


class TranslationOracle(Protocol):
    """(key, source_text, language) -> 译文；空/None 表示没有结果，失败抛 OracleFailure。"""

    async def translate(self, key: str, text: str, language: str) -> Optional[str]:
        ...


# =========================================================
# Prompt (fixed preamble + 2 worked examples)
# =========================================================


DEFAULT_BRAND_NAMES = ("Air Code", "Codea")

_SYSTEM_ROLE = (
    "You are a professional iOS app translator. You specialize in apps for graphic design and programming. "
    "You will be provided with a string, its associated localization key, and target language code. "
    "You are to simply reply with the translation of the string into that target language — NO OTHER TEXT"
)

_EXAMPLES = [
    (
        'Key: "IMPORT_PROJECT_ALERT_ERROR_MESSAGE", String: "An error occurred during import. %@", Language: ja',
        "インポート中にエラーが発生しました。%@",
    ),
    (
        'Key: "PROJECT_USER_DID_COPY_INFO", '
        "String: \"The contents of project '%@' have been copied to the clipboard\", Language: de",
        'Die Inhalte des Projekts "%@" wurden in die Zwischenablage kopiert',
    ),
]


def user_message(key: str, text: str, language: str) -> str:
    return f'Key: "{key}", String: "{text}", Language: {language}'


def build_preamble(
    brand_names: Sequence[str] = DEFAULT_BRAND_NAMES,
    extra_en: Optional[str] = None,
) -> List[Dict[str, str]]:
    brands = ", ".join(f"'{b}'" for b in brand_names)
    msgs = [{"role": "system", "content": _SYSTEM_ROLE}]
    if brands:
        msgs.append({
            "role": "system",
            "content": f"Some brand names within the app should not be translated, such as {brands}",
        })
    msgs.append({"role": "system", "content": "DO NOT translate text within `backticks` as this refers to code"})
    msgs.append({
        "role": "system",
        "content": "DO NOT translate stuff that looks like Lua code "
                   "(but string variables within the code text may be translated)",
    })
    extra = (extra_en or "").strip()
    if extra:
        msgs.append({"role": "system", "content": extra})

    for q, a in _EXAMPLES:
        msgs.append({"role": "user", "content": q})
        msgs.append({"role": "assistant", "content": a})
    return msgs


# =========================================================
# OpenAI chat oracle
# =========================================================


@dataclass(frozen=True)
class ChatOptions:
    model: Union[OpenAIModel, str] = OpenAIModel.GPT_4O
    temperature: float = 0.2
    top_p: float = 1.0
    timeout: float = 30.0
    api_key_env: str = "OPENAI_API_KEY"
    brand_names: Sequence[str] = field(default_factory=lambda: list(DEFAULT_BRAND_NAMES))
    extra_en: str = ""


class OpenAIOracle:
    """每个 key 一次 chat completion；不重试（失败由调用方整批中止）。"""

    def __init__(self, *, api_key: Optional[str] = None, opt: Optional[ChatOptions] = None, client=None):
        self.opt = opt or ChatOptions()
        self.client = client or OpenAIClientFactory(
            timeout=self.opt.timeout,
            api_key_env=self.opt.api_key_env,
        ).create(api_key=api_key)
        self.preamble = build_preamble(self.opt.brand_names, self.opt.extra_en)

    def build_messages(self, key: str, text: str, language: str) -> List[Dict[str, str]]:
        msgs = [dict(m) for m in self.preamble]
        msgs.append({"role": "user", "content": user_message(key, text, language)})
        return msgs

    async def translate(self, key: str, text: str, language: str) -> Optional[str]:
        try:
            resp = await self.client.chat.completions.create(
                model=model_name(self.opt.model),
                messages=self.build_messages(key, text, language),
                temperature=self.opt.temperature,
                top_p=self.opt.top_p,
            )
        except Exception as e:
            raise OracleFailure(f"翻译请求失败（{key} -> {language}）：{e}", key=key, language=language) from e

        if not resp.choices:
            return None
        # 原样返回：.strings 里首尾空格有意义
        return resp.choices[0].message.content or None
