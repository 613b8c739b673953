from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from .errors import OracleFailure
from .oracle.chat import TranslationOracle
from .store import LocalizationStore

log = logging.getLogger(__name__)


# (done, total)；(0, 0) 表示整批结束
ProgressCallback = Callable[[int, int], None]


class CompletionState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class CompletionResult:
    language: str
    total: int = 0
    translated: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    state: CompletionState = CompletionState.COMPLETED

    @property
    def cancelled(self) -> bool:
        return self.state == CompletionState.CANCELLED


def _safe_progress(cb: Optional[ProgressCallback], done: int, total: int) -> None:
    if not cb:
        return
    try:
        cb(done, total)
    except Exception:
        # Progress callbacks must never affect translation.
        log.exception("progress callback failed")


class TranslationCompletion:
    """
    Fill in the missing keys of one target language, one oracle call at a time.

    Keys are translated in alphabetical order. Each non-empty result is written
    into the store before the next request, so a later failure never loses
    earlier work. The first oracle failure aborts the batch (no retry, no skip)
    and is re-raised as OracleFailure.
    """

    def __init__(
        self,
        store: LocalizationStore,
        language: str,
        oracle: TranslationOracle,
        *,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ):
        self.store = store
        self.language = language
        self.oracle = oracle
        self.on_progress = on_progress
        self.cancel_event = cancel_event

        self.state = CompletionState.IDLE
        self.result: Optional[CompletionResult] = None
        self.error: Optional[OracleFailure] = None

    async def run(self) -> CompletionResult:
        if self.state != CompletionState.IDLE:
            raise RuntimeError(f"completion already {self.state.value}")
        self.state = CompletionState.RUNNING

        result = CompletionResult(language=self.language)
        self.result = result

        if self.language not in self.store.translations:
            log.info("%s: unknown language %s, nothing to do", self.store.name, self.language)
            self.state = CompletionState.COMPLETED
            return result

        missing = self.store.missing_keys(self.language)
        total = len(missing)
        result.total = total
        _safe_progress(self.on_progress, 0, total)

        for index, key in enumerate(missing):
            if self.cancel_event is not None and self.cancel_event.is_set():
                log.info("%s/%s: cancelled after %d keys", self.store.name, self.language, len(result.translated))
                self.state = result.state = CompletionState.CANCELLED
                return result

            try:
                value = await self.oracle.translate(key, self.store.source_strings[key], self.language)
            except OracleFailure as e:
                e.committed = len(result.translated)
                self._fail(e)
                raise
            except Exception as e:
                failure = OracleFailure(
                    f"翻译请求失败（{key} -> {self.language}）：{e}",
                    key=key,
                    language=self.language,
                    committed=len(result.translated),
                )
                self._fail(failure)
                raise failure from e

            if not value:
                log.debug("%s/%s: empty result for %s, skipped", self.store.name, self.language, key)
                result.skipped.append(key)
                continue

            self.store.set_translation(key, self.language, value)
            result.translated.append(key)
            log.debug("%s/%s: %d/%d %s", self.store.name, self.language, index + 1, total, key)

            if index + 1 < total:
                _safe_progress(self.on_progress, index + 1, total)
            else:
                _safe_progress(self.on_progress, 0, 0)

        self.state = result.state = CompletionState.COMPLETED
        return result

    def _fail(self, failure: OracleFailure) -> None:
        log.warning(
            "%s/%s: aborted at %s, %d keys committed: %s",
            self.store.name, self.language, failure.key, failure.committed, failure,
        )
        self.error = failure
        self.state = CompletionState.FAILED
        if self.result is not None:
            self.result.state = CompletionState.FAILED


async def complete_missing(
    store: LocalizationStore,
    language: str,
    oracle: TranslationOracle,
    on_progress: Optional[ProgressCallback] = None,
    *,
    cancel_event: Optional[asyncio.Event] = None,
) -> CompletionResult:
    job = TranslationCompletion(store, language, oracle, on_progress=on_progress, cancel_event=cancel_event)
    return await job.run()
