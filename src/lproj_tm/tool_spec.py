from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence


# ----------------------------
# BOX_TOOL 描述：box 工具集统一的元信息格式
# ----------------------------

@dataclass(frozen=True)
class ToolSpec:
    id: str
    name: str
    category: str
    summary: str
    usage: List[str] = field(default_factory=list)
    options: List[Dict[str, str]] = field(default_factory=list)   # [{"flag", "desc"}]
    examples: List[Dict[str, str]] = field(default_factory=list)  # [{"cmd", "desc"}]
    dependencies: List[str] = field(default_factory=list)
    docs: str = "README.md"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def opt(flag: str, desc: str) -> Dict[str, str]:
    return {"flag": flag, "desc": desc}


def ex(cmd: str, desc: str) -> Dict[str, str]:
    return {"cmd": cmd, "desc": desc}


def tool(
        *,
        id: str,
        name: str,
        category: str,
        summary: str,
        usage: Optional[Sequence[str]] = None,
        options: Optional[Sequence[Mapping[str, str]]] = None,
        examples: Optional[Sequence[Mapping[str, str]]] = None,
        dependencies: Optional[Sequence[str]] = None,
        docs: Optional[str] = None,
) -> Dict[str, Any]:
    """生成 BOX_TOOL dict（模块级导出，供 box tools 列表/帮助页读取）。"""
    return ToolSpec(
        id=id,
        name=name,
        category=category,
        summary=summary,
        usage=list(usage or []),
        options=[dict(o) for o in (options or [])],
        examples=[dict(e) for e in (examples or [])],
        dependencies=list(dependencies or []),
        docs=docs or "README.md",
    ).to_dict()


def validate_tool(d: Mapping[str, Any]) -> List[str]:
    """返回错误列表；空列表表示通过。"""
    errors: List[str] = []

    for key in ("id", "name", "category", "summary", "docs"):
        v = d.get(key)
        if not isinstance(v, str) or not v.strip():
            errors.append(f"缺少或非法字段：{key}（必须为非空字符串）")

    for key in ("usage", "dependencies"):
        v = d.get(key)
        if not isinstance(v, list) or any(not isinstance(x, str) or not x.strip() for x in v):
            errors.append(f"字段 {key} 必须是非空字符串列表")

    for key, fields in (("options", ("flag", "desc")), ("examples", ("cmd", "desc"))):
        items = d.get(key)
        if not isinstance(items, list):
            errors.append(f"字段 {key} 必须是 list")
            continue
        for i, it in enumerate(items):
            for f in fields:
                v = it.get(f) if isinstance(it, Mapping) else None
                if not isinstance(v, str) or not v.strip():
                    errors.append(f"{key}[{i}].{f} 必须为非空字符串")

    return errors


def format_usage(d: Mapping[str, Any]) -> str:
    """argparse epilog：常用命令 + 示例。"""
    lines = ["常用命令："]
    lines.extend(f"  {u}" for u in d.get("usage") or [])
    if d.get("examples"):
        lines.append("")
        lines.append("示例：")
        lines.extend(f"  {e['cmd']:<58} {e['desc']}" for e in d["examples"])
    return "\n".join(lines)
