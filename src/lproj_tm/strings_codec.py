from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Optional


# "KEY" = "VALUE";
# - key 不跨行、不含引号
# - value 可跨行；可以包含引号，只要引号后面不是（空白 +）分号
# 注释单独匹配出来再丢掉，这样注释里的 "k" = "v"; 不会被当成条目。
_STATEMENT = r'"(?P<key>[^"\n]*)"\s*=\s*"(?P<val>(?:[^"]|"(?!\s*;))*?)"\s*;'
_COMMENT = r"/\*.*?\*/|//[^\n]*"

TOKEN_RE = re.compile(rf"(?P<comment>{_COMMENT})|{_STATEMENT}", re.DOTALL)


@dataclass
class ParsedStrings:
    values: Dict[str, str] = field(default_factory=dict)
    # 文件出现顺序，包含重复 key
    keys: List[str] = field(default_factory=list)

    def unique_keys(self) -> List[str]:
        return list(dict.fromkeys(self.keys))


def parse_strings(text: str) -> ParsedStrings:
    """
    Parse `.strings` text.

    Malformed statements are skipped; the parser never fails a whole file.
    Duplicate keys: the last occurrence wins in `values`, every occurrence is
    kept in `keys`. Keys and values are returned raw (escapes untouched).
    """
    out = ParsedStrings()
    for m in TOKEN_RE.finditer(text or ""):
        if m.group("comment") is not None:
            continue
        key = m.group("key")
        out.values[key] = m.group("val")
        out.keys.append(key)
    return out


def format_entry(key: str, value: str) -> str:
    return f'"{key}" = "{value}";'


def serialize_strings(mapping: Mapping[str, str], order: Optional[Iterable[str]] = None) -> str:
    """
    One `"KEY" = "VALUE";` line per key, newline-joined, no trailing newline.

    order=None -> keys sorted alphabetically. Keys in `order` that are not in
    the mapping, or already written, are skipped.
    """
    keys = sorted(mapping.keys()) if order is None else order

    lines: List[str] = []
    seen = set()
    for k in keys:
        if k in seen or k not in mapping:
            continue
        seen.add(k)
        lines.append(format_entry(k, mapping[k]))
    return "\n".join(lines)
