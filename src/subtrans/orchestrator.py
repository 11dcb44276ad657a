"""
Run driver: batches a document, resolves every group in order and streams
progress events on a single channel.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable

from .alignment import repair_alignment
from .batching import group_segments_by_tokens
from .config import Settings
from .errors import AuthError, QuotaExhaustedError
from .models import ProgressEvent, Segment
from .retry import SleepFunc
from .splitter import ChunkSplitter
from .srt_utils import compose_srt, parse_srt_text
from .translation import Translator

logger = logging.getLogger("subtrans")

TERMINAL_KINDS = ("result", "error")

Emit = Callable[[ProgressEvent], None]


class TranslationRun:
    """Translation of one document.

    The run owns its output list and translated count; events are
    delivered in order through ``events()``. Closing that generator early
    cancels the run.
    """

    def __init__(
        self,
        segments: list[Segment],
        translator: Translator,
        api_key: str,
        settings: Settings | None = None,
        *,
        sleep: SleepFunc = asyncio.sleep,
        tokenizer: Callable[[str], int] | None = None,
    ):
        self.segments = list(segments)
        self.translator = translator
        self.api_key = api_key
        self.settings = settings or Settings()
        self.sleep = sleep
        self.tokenizer = tokenizer
        self.translations: list[str] = []
        self.translated_count = 0
        self._chunk_index: int | None = None
        self._chunk_total: int | None = None

    async def events(self) -> AsyncIterator[ProgressEvent]:
        queue: asyncio.Queue[ProgressEvent] = asyncio.Queue()
        task = asyncio.create_task(self._run(queue.put_nowait))
        try:
            while True:
                event = await queue.get()
                yield event
                if event.kind in TERMINAL_KINDS:
                    break
        finally:
            if not task.done():
                logger.info("Run abandoned by caller, cancelling")
                task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    def _event(self, kind: str, message: str = "", **extra) -> ProgressEvent:
        return ProgressEvent(
            kind=kind,
            translated_count=self.translated_count,
            total_count=len(self.segments),
            chunk_index=self._chunk_index,
            chunk_total=self._chunk_total,
            message=message,
            **extra,
        )

    async def _run(self, emit: Emit) -> None:
        total = len(self.segments)
        try:
            groups = group_segments_by_tokens(self.segments, self.settings.max_tokens, self.tokenizer)
            self._chunk_total = len(groups)
            logger.info(f"Translating {total} segments in {len(groups)} chunks")

            splitter = ChunkSplitter(
                self.translator,
                self.settings.language,
                self.api_key,
                policy=self.settings.retry,
                on_quota_wait=lambda seconds: emit(
                    self._event("quota_wait", f"Quota reached, waiting {seconds:.0f}s", retry_after_seconds=seconds)
                ),
                on_quota_resume=lambda: emit(self._event("quota_resume", "Resuming translation")),
                sleep=self.sleep,
            )

            for index, group in enumerate(groups, 1):
                self._chunk_index = index
                results = await self._resolve_with_pause(splitter, group, emit)
                self.translations.extend(results)
                self.translated_count = min(len(self.translations), total)
                emit(self._event("progress", f"Translated chunk {index}/{len(groups)}"))

            final = repair_alignment(self.translations, [seg.text for seg in self.segments], where="run")
            self.translations = final
            self.translated_count = total
            document = compose_srt(self.segments, final)
            logger.info(f"Run complete: {total} segments, {splitter.calls} translation calls")
            emit(self._event("complete", "Translation complete"))
            emit(self._event("result", translations=final, document=document))
        except AuthError as e:
            logger.error(f"Run aborted, credential rejected: {e}")
            emit(self._event("error", str(e), error_type=AuthError.error_type))
        except QuotaExhaustedError as e:
            logger.error(f"Run aborted, quota still exhausted: {e}")
            emit(self._event("error", str(e), error_type=QuotaExhaustedError.error_type))
        except Exception as e:
            logger.exception(f"Run aborted: {e}")
            emit(self._event("error", str(e), error_type="translation_error"))

    async def _resolve_with_pause(self, splitter: ChunkSplitter, group: list[Segment], emit: Emit) -> list[str]:
        try:
            return await splitter.resolve_group(group)
        except QuotaExhaustedError as e:
            cooldown = e.retry_after
            logger.warning(f"Chunk {self._chunk_index} exhausted the quota, pausing {cooldown:.0f}s before one retry")
            emit(self._event("quota_wait", f"Quota exhausted, waiting {cooldown:.0f}s", retry_after_seconds=cooldown))
            await self.sleep(cooldown)
            emit(self._event("quota_resume", "Retrying chunk after quota pause"))
            return await splitter.resolve_group(group)


async def translate_document(
    raw: str,
    translator: Translator,
    api_key: str,
    settings: Settings | None = None,
    **kwargs,
) -> AsyncIterator[ProgressEvent]:
    """Parse SRT text and stream the events of translating it."""
    run = TranslationRun(parse_srt_text(raw), translator, api_key, settings, **kwargs)
    async for event in run.events():
        yield event
