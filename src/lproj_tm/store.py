from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .config import DEFAULT_SOURCE_LOCALES, LPROJ_SUFFIX, STRINGS_EXT
from .encoding import UNDECODABLE, StringsEncoding, decode_bytes, encode_text
from .errors import DirectoryReadError, FileWriteError
from .strings_codec import format_entry, parse_strings, serialize_strings

log = logging.getLogger(__name__)


# =========================================================
# Change notifications
# =========================================================


class StoreEventKind(str, Enum):
    LOADED = "loaded"
    TRANSLATION_SET = "translation_set"
    TRANSLATION_REMOVED = "translation_removed"
    SAVED = "saved"


@dataclass(frozen=True)
class StoreEvent:
    kind: StoreEventKind
    store: "LocalizationStore"
    language: Optional[str] = None
    key: Optional[str] = None


StoreListener = Callable[[StoreEvent], None]


@dataclass(frozen=True)
class StringsRow:
    key: str
    source: str
    translation: Optional[str]  # None = Missing Translation


# =========================================================
# Directory helpers
# =========================================================


def list_language_folders(root: Path) -> List[Tuple[str, Path]]:
    """
    列出 root 下的 *.lproj 目录：[(lang_code, folder)]，按目录名排序，跳过隐藏目录。
    列目录失败抛 DirectoryReadError，由调用方决定记日志还是上抛。
    """
    try:
        children = sorted(root.iterdir(), key=lambda p: p.name)
    except OSError as e:
        raise DirectoryReadError(root, e)

    out: List[Tuple[str, Path]] = []
    for p in children:
        if p.name.startswith("."):
            continue
        if p.name.endswith(LPROJ_SUFFIX) and p.is_dir():
            out.append((p.name[: -len(LPROJ_SUFFIX)], p))
    return out


# =========================================================
# LocalizationStore
# =========================================================


class LocalizationStore:
    """
    一个 .strings 资源（例如 Localizable.strings）在所有语言目录下的内存模型。

    - source_strings / key_order 来自源语言目录（en / Base）
    - translations[lang] 只在该语言目录下确实有这个文件时存在
    - encoding / has_bom 取自源语言文件，写回所有语言时复用
    """

    def __init__(self, name: str, *, source_locales: Iterable[str] = DEFAULT_SOURCE_LOCALES):
        self.name = name
        self.source_locales: Tuple[str, ...] = tuple(source_locales)

        self.key_order: List[str] = []
        self.source_strings: Dict[str, str] = {}
        self.translations: Dict[str, Dict[str, str]] = {}

        self.encoding: StringsEncoding = StringsEncoding.UTF8
        self.has_bom: bool = False

        self._listeners: List[StoreListener] = []

    def __repr__(self) -> str:
        return (
            f"LocalizationStore(name={self.name!r}, keys={len(self.key_order)}, "
            f"languages={self.languages}, encoding={self.encoding.value}, bom={self.has_bom})"
        )

    # ---------------------------------------------------------
    # observers
    # ---------------------------------------------------------

    def subscribe(self, listener: StoreListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _emit(self, kind: StoreEventKind, language: Optional[str] = None, key: Optional[str] = None) -> None:
        event = StoreEvent(kind=kind, store=self, language=language, key=key)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                # 监听方出错不能影响 store 本身
                log.exception("store listener failed: %s %s", self.name, kind.value)

    # ---------------------------------------------------------
    # derived state
    # ---------------------------------------------------------

    @property
    def languages(self) -> List[str]:
        return sorted(self.translations.keys())

    def is_source_language(self, language: str) -> bool:
        return language in self.source_locales

    def missing_keys(self, language: str) -> List[str]:
        """sorted(source keys - translated keys)；未知语言返回空列表。"""
        present = self.translations.get(language)
        if present is None:
            return []
        return sorted(k for k in self.source_strings if k not in present)

    def rows(self, language: Optional[str] = None) -> List[StringsRow]:
        current = self.translations.get(language or "", {})
        return [
            StringsRow(key=k, source=self.source_strings[k], translation=current.get(k))
            for k in sorted(self.source_strings)
        ]

    # ---------------------------------------------------------
    # load
    # ---------------------------------------------------------

    def _read_file(self, path: Path):
        try:
            data = path.read_bytes()
        except OSError as e:
            log.warning("cannot read %s: %s", path, e)
            return UNDECODABLE

        decoded = decode_bytes(data)
        if decoded is UNDECODABLE:
            log.warning("cannot decode %s as UTF-8/UTF-16, treated as empty", path)
        return decoded

    def load(self, root: Path, restrict_to_language: Optional[str] = None) -> None:
        """
        从 root/<lang>.lproj/<name> 读取。

        restrict_to_language=None：全量（源语言 + 所有翻译）。
        restrict_to_language=lang：只重新读这一个语言，覆盖内存中的修改；
        lang 为源语言时只重读 source_strings。
        """
        root = Path(root)
        try:
            folders = list_language_folders(root)
        except DirectoryReadError as e:
            log.warning("%s", e)
            return

        restrict_to_source = restrict_to_language is not None and self.is_source_language(restrict_to_language)

        for lang, folder in folders:
            path = folder / self.name
            if not path.is_file():
                continue

            if self.is_source_language(lang):
                if restrict_to_language is not None and not (restrict_to_source and lang == restrict_to_language):
                    continue
                decoded = self._read_file(path)
                parsed = parse_strings(decoded.text)
                self.source_strings = parsed.values
                self.key_order = parsed.unique_keys()
                if decoded.encoding is not None:
                    self.encoding = decoded.encoding
                    self.has_bom = decoded.has_bom
                log.debug("%s: source %s, %d keys (%s)", self.name, lang, len(self.key_order), self.encoding.value)
                continue

            if restrict_to_language is None or restrict_to_language == lang:
                decoded = self._read_file(path)
                self.translations[lang] = parse_strings(decoded.text).values
                log.debug("%s: %s, %d keys", self.name, lang, len(self.translations[lang]))

        self._emit(StoreEventKind.LOADED, language=restrict_to_language)

    def reload_language(self, root: Path, language: str) -> None:
        self.load(root, restrict_to_language=language)

    # ---------------------------------------------------------
    # mutations
    # ---------------------------------------------------------

    def set_translation(self, key: str, language: str, value: str) -> None:
        self.translations.setdefault(language, {})[key] = value
        self._emit(StoreEventKind.TRANSLATION_SET, language=language, key=key)

    def remove_translation(self, key: str, language: str) -> None:
        current = self.translations.get(language)
        if current is None or key not in current:
            return
        del current[key]
        self._emit(StoreEventKind.TRANSLATION_REMOVED, language=language, key=key)

    # ---------------------------------------------------------
    # export / save
    # ---------------------------------------------------------

    def export_text(self, language: str) -> str:
        """按源文件 key 顺序导出（复制到剪贴板用）；未知语言返回空字符串。"""
        current = self.translations.get(language)
        if current is None:
            return ""
        return serialize_strings(current, self.key_order)

    def entry_text(self, key: str, language: str) -> Optional[str]:
        value = self.translations.get(language, {}).get(key)
        if value is None:
            return None
        return format_entry(key, value)

    def file_path(self, root: Path, language: str) -> Path:
        root = Path(root)
        try:
            folders = dict(list_language_folders(root))
        except DirectoryReadError as e:
            raise FileWriteError(root / f"{language}{LPROJ_SUFFIX}" / self.name, str(e))
        folder = folders.get(language, root / f"{language}{LPROJ_SUFFIX}")
        return folder / self.name

    def save(self, root: Path, language: str) -> Path:
        """
        写回一个语言：key 按字母序，使用 store 记录的编码，has_bom 时补 BOM。
        整个文件覆盖写。
        """
        current = self.translations.get(language)
        if current is None:
            raise FileWriteError(None, f"{self.name}: 未加载语言 {language}，无法保存")

        path = self.file_path(root, language)
        data = encode_text(serialize_strings(current), self.encoding, self.has_bom)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            raise FileWriteError(path, f"写入失败：{path}（{e}）")

        log.info("saved %s (%d keys, %s%s)", path, len(current), self.encoding.value, " + BOM" if self.has_bom else "")
        self._emit(StoreEventKind.SAVED, language=language)
        return path


# =========================================================
# Directory scanner
# =========================================================


def discover_stores(
    root: Path,
    *,
    source_locales: Iterable[str] = DEFAULT_SOURCE_LOCALES,
) -> Dict[str, LocalizationStore]:
    """
    扫描 root/*.lproj/*.strings：每个不同的文件名一个 store，并全量加载。
    单个语言目录读不了只跳过；root 读不了返回空。
    """
    root = Path(root)
    source_locales = tuple(source_locales)
    stores: Dict[str, LocalizationStore] = {}

    try:
        folders = list_language_folders(root)
    except DirectoryReadError as e:
        log.warning("%s", e)
        return stores

    for _lang, folder in folders:
        try:
            files = sorted(folder.iterdir(), key=lambda p: p.name)
        except OSError as e:
            log.warning("%s", DirectoryReadError(folder, e))
            continue

        for f in files:
            # ._X.strings：macOS AppleDouble 元数据
            if f.name.startswith(".") or f.suffix != STRINGS_EXT or not f.is_file():
                continue
            if f.name in stores:
                continue
            store = LocalizationStore(f.name, source_locales=source_locales)
            store.load(root)
            stores[f.name] = store

    return stores
