from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from .errors import ConfigError
from .oracle.models import OpenAIModel


# ----------------------------
# 常量 / 默认文件名
# ----------------------------
CONFIG_FILE = "lproj_tm.yaml"
LPROJ_SUFFIX = ".lproj"
STRINGS_EXT = ".strings"
DEFAULT_SOURCE_LOCALES: Tuple[str, ...] = ("en", "Base")

DEFAULT_TEMPLATE = """\
# lproj_tm 配置
# 放在项目根目录；命令行参数优先级高于这里。

# *.lproj 所在目录（相对项目根目录）
lang_root: .

# 源语言目录（去掉 .lproj 后缀）；出现多个时后读到的覆盖先读到的（按目录名排序）
source_locales:
  - en
  - Base

openai:
  model: gpt-4o
  timeout: 30
  # 读取 API Key 的环境变量名
  api_key_env: OPENAI_API_KEY

prompts:
  # 不需要翻译的品牌/产品名
  brand_names:
    - Air Code
    - Codea
  # 追加到 system 指令后面的英文说明（可空）
  extra_en: ""
"""


# ----------------------------
# 数据模型
# ----------------------------
@dataclass(frozen=True)
class OpenAIOptions:
    model: str = OpenAIModel.GPT_4O.value
    timeout: float = 30.0
    api_key_env: str = "OPENAI_API_KEY"


@dataclass(frozen=True)
class PromptOptions:
    brand_names: List[str] = field(default_factory=lambda: ["Air Code", "Codea"])
    extra_en: str = ""


@dataclass(frozen=True)
class LprojConfig:
    project_root: Path
    lang_root: Path                     # 绝对路径：*.lproj 所在目录
    source_locales: Tuple[str, ...] = DEFAULT_SOURCE_LOCALES
    openai: OpenAIOptions = field(default_factory=OpenAIOptions)
    prompts: PromptOptions = field(default_factory=PromptOptions)
    path: Optional[Path] = None         # 实际读取的配置文件；None=默认值


def default_config(project_root: Path) -> LprojConfig:
    project_root = project_root.resolve()
    return LprojConfig(project_root=project_root, lang_root=project_root)


# ----------------------------
# validate：字段 + 类型
# ----------------------------
def _str_list(raw: Any, name: str) -> List[str]:
    if not isinstance(raw, list):
        raise ValueError(f"{name} 必须是数组")
    out: List[str] = []
    for x in raw:
        if not isinstance(x, str) or not x.strip():
            raise ValueError(f"{name} 只能包含非空字符串")
        out.append(x.strip())
    return out


def validate_config(raw: Dict[str, Any]) -> None:
    if not isinstance(raw, dict):
        raise ValueError("配置顶层必须是 object")

    if "lang_root" in raw and (not isinstance(raw["lang_root"], str) or not raw["lang_root"].strip()):
        raise ValueError("lang_root 必须是非空字符串")

    if "source_locales" in raw:
        locales = _str_list(raw["source_locales"], "source_locales")
        if not locales:
            raise ValueError("source_locales 不能为空")

    openai = raw.get("openai", {})
    if not isinstance(openai, dict):
        raise ValueError("openai 必须是 object")
    if "model" in openai and (not isinstance(openai["model"], str) or not openai["model"].strip()):
        raise ValueError("openai.model 必须是非空字符串")
    if "timeout" in openai:
        t = openai["timeout"]
        if isinstance(t, bool) or not isinstance(t, (int, float)) or t <= 0:
            raise ValueError("openai.timeout 必须是正数")
    if "api_key_env" in openai and (not isinstance(openai["api_key_env"], str) or not openai["api_key_env"].strip()):
        raise ValueError("openai.api_key_env 必须是非空字符串")

    prompts = raw.get("prompts", {})
    if not isinstance(prompts, dict):
        raise ValueError("prompts 必须是 object")
    if "brand_names" in prompts:
        _str_list(prompts["brand_names"], "prompts.brand_names")
    if "extra_en" in prompts and not isinstance(prompts["extra_en"] or "", str):
        raise ValueError("prompts.extra_en 必须是字符串")


# ----------------------------
# load_config：配置文件不存在时返回默认值
# ----------------------------
def load_config(cfg_path: Optional[Path], *, project_root: Path) -> LprojConfig:
    project_root = project_root.expanduser().resolve()
    if cfg_path is None:
        cfg_path = project_root / CONFIG_FILE
    cfg_path = cfg_path.expanduser()
    if not cfg_path.is_absolute():
        cfg_path = (project_root / cfg_path).resolve()

    if not cfg_path.exists():
        return default_config(project_root)

    try:
        raw = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(
            f"配置文件无法解析为 YAML：{cfg_path}\n"
            f"原因：{e}\n"
            f"解决方法：修复 YAML 格式或运行 `box_lproj_tm init` 重新生成。"
        )

    try:
        validate_config(raw)
    except ValueError as e:
        raise ConfigError(
            f"配置文件校验失败：{cfg_path}\n"
            f"原因：{e}\n"
            f"解决方法：修复配置字段/类型，或运行 `box_lproj_tm init` 重新生成。"
        )

    openai = raw.get("openai") or {}
    prompts = raw.get("prompts") or {}
    defaults = PromptOptions()

    return LprojConfig(
        project_root=project_root,
        lang_root=(project_root / str(raw.get("lang_root") or ".")).resolve(),
        source_locales=tuple(raw.get("source_locales") or DEFAULT_SOURCE_LOCALES),
        openai=OpenAIOptions(
            model=str(openai.get("model") or OpenAIModel.GPT_4O.value).strip(),
            timeout=float(openai.get("timeout") or 30.0),
            api_key_env=str(openai.get("api_key_env") or "OPENAI_API_KEY").strip(),
        ),
        prompts=PromptOptions(
            brand_names=list(prompts.get("brand_names", defaults.brand_names) or []),
            extra_en=str(prompts.get("extra_en") or ""),
        ),
        path=cfg_path,
    )


def init_config(cfg_path: Path) -> bool:
    """生成默认配置；已存在则只校验。返回是否新建。"""
    if cfg_path.exists():
        load_config(cfg_path, project_root=cfg_path.parent)
        return False
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    cfg_path.write_text(DEFAULT_TEMPLATE, encoding="utf-8")
    return True
