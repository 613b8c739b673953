from __future__ import annotations

import codecs
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class StringsEncoding(str, Enum):
    UTF8 = "utf-8"
    UTF16_LE = "utf-16-le"
    UTF16_BE = "utf-16-be"


BOMS = {
    StringsEncoding.UTF8: codecs.BOM_UTF8,          # EF BB BF
    StringsEncoding.UTF16_BE: codecs.BOM_UTF16_BE,  # FE FF
    StringsEncoding.UTF16_LE: codecs.BOM_UTF16_LE,  # FF FE
}


@dataclass(frozen=True)
class DecodedText:
    text: str
    encoding: Optional[StringsEncoding]
    has_bom: bool = False


# 所有编码都解不开时返回它；调用方按“空内容”处理
UNDECODABLE = DecodedText(text="", encoding=None, has_bom=False)


def _try_decode(data: bytes, encoding: StringsEncoding) -> Optional[str]:
    try:
        return data.decode(encoding.value)
    except UnicodeDecodeError:
        return None


def _utf16_candidates(data: bytes):
    # 出现 FE FF 开头时先试 BE，否则 BE 文件会被当成“乱码但合法”的 LE
    if data.startswith(BOMS[StringsEncoding.UTF16_BE]):
        return (StringsEncoding.UTF16_BE, StringsEncoding.UTF16_LE)
    return (StringsEncoding.UTF16_LE, StringsEncoding.UTF16_BE)


def decode_bytes(data: bytes) -> DecodedText:
    """
    判定编码并解码：
    - 含 0x00 字节：按 UTF-16 处理，先 LE 后 BE
    - 否则（或 UTF-16 都失败）：UTF-8
    BOM 只和最终选中的编码比对；命中时从文本里去掉。
    """
    candidates = []
    if b"\x00" in data:
        candidates.extend(_utf16_candidates(data))
    candidates.append(StringsEncoding.UTF8)

    for enc in candidates:
        text = _try_decode(data, enc)
        if text is None:
            continue
        has_bom = data.startswith(BOMS[enc])
        if has_bom and text.startswith("\ufeff"):
            text = text[1:]
        return DecodedText(text=text, encoding=enc, has_bom=has_bom)

    return UNDECODABLE


def encode_text(text: str, encoding: StringsEncoding, has_bom: bool) -> bytes:
    raw = text.encode(StringsEncoding(encoding).value)
    if has_bom:
        return BOMS[StringsEncoding(encoding)] + raw
    return raw
