"""
lproj_tm - .strings 多语言表管理 + AI 补全缺失翻译

    stores = discover_stores(Path("Resources"))
    store = stores["Localizable.strings"]
    await complete_missing(store, "de", OpenAIOracle(), on_progress=print)
    store.save(Path("Resources"), "de")
"""

from __future__ import annotations

__version__ = "0.1.0"

from .completion import CompletionResult, CompletionState, TranslationCompletion, complete_missing
from .encoding import UNDECODABLE, DecodedText, StringsEncoding, decode_bytes, encode_text
from .errors import ConfigError, DirectoryReadError, FileWriteError, LprojError, OracleFailure
from .store import LocalizationStore, StoreEvent, StoreEventKind, StringsRow, discover_stores
from .strings_codec import ParsedStrings, format_entry, parse_strings, serialize_strings

__all__ = [
    'CompletionResult',
    'CompletionState',
    'ConfigError',
    'DecodedText',
    'DirectoryReadError',
    'FileWriteError',
    'LocalizationStore',
    'LprojError',
    'OracleFailure',
    'ParsedStrings',
    'StoreEvent',
    'StoreEventKind',
    'StringsEncoding',
    'StringsRow',
    'TranslationCompletion',
    'UNDECODABLE',
    'complete_missing',
    'decode_bytes',
    'discover_stores',
    'encode_text',
    'format_entry',
    'parse_strings',
    'serialize_strings',
]
