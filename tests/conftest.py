import sys
from pathlib import Path
from typing import Dict, Optional

import pytest


# Ensure 'src/' is on sys.path so 'lproj_tm' can be imported when running tests from repo root.
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_DIR = REPO_ROOT / "src"
if SRC_DIR.exists():
    sys.path.insert(0, str(SRC_DIR))


@pytest.fixture
def chdir_tmp(tmp_path, monkeypatch):
    """切到临时目录执行（避免污染仓库）。"""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def write_strings(root: Path, lang: str, name: str, content, encoding: str = "utf-8", bom: bytes = b"") -> Path:
    """写 root/<lang>.lproj/<name>；content 为 str 时按 encoding 编码，bytes 原样写。"""
    folder = root / f"{lang}.lproj"
    folder.mkdir(parents=True, exist_ok=True)
    path = folder / name
    data = content if isinstance(content, bytes) else bom + content.encode(encoding)
    path.write_bytes(data)
    return path


def strings_text(pairs: Dict[str, str]) -> str:
    return "\n".join(f'"{k}" = "{v}";' for k, v in pairs.items())


class FakeOracle:
    """
    记录每次调用；handler(key, text, language) 决定返回值（可抛异常）。
    默认返回 "<language>:<text>"。
    """

    def __init__(self, handler=None):
        self.calls = []
        self._handler = handler

    async def translate(self, key: str, text: str, language: str) -> Optional[str]:
        self.calls.append((key, text, language))
        if self._handler is not None:
            return self._handler(key, text, language)
        return f"{language}:{text}"


@pytest.fixture
def lproj_root(tmp_path):
    """
    en: greeting / farewell / title（源文件里的顺序即 key_order）
    de: greeting 已翻译
    fr: 空文件
    """
    root = tmp_path / "Resources"
    write_strings(
        root,
        "en",
        "Localizable.strings",
        '/* Greeting on the home screen */\n'
        '"greeting" = "Hello";\n'
        '"farewell" = "Goodbye";\n'
        '// title\n'
        '"title" = "Air Code";\n',
    )
    write_strings(root, "de", "Localizable.strings", '"greeting" = "Hallo";\n')
    write_strings(root, "fr", "Localizable.strings", "")
    return root
