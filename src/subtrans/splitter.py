"""
Group resolution with recursive halving on truncated responses.
"""

import asyncio
import logging

from .alignment import repair_alignment
from .errors import AuthError, QuotaExhaustedError, TranslationError, TruncatedError
from .models import Segment
from .retry import (
    QuotaResumeCallback,
    QuotaWaitCallback,
    RetryPolicy,
    SleepFunc,
    translate_with_retry,
)
from .translation import DELIMITER, Translator

logger = logging.getLogger("subtrans")


class ChunkSplitter:
    """Resolve a group of segments to exactly one string per segment."""

    def __init__(
        self,
        translator: Translator,
        language: str,
        api_key: str,
        policy: RetryPolicy | None = None,
        on_quota_wait: QuotaWaitCallback | None = None,
        on_quota_resume: QuotaResumeCallback | None = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.translator = translator
        self.language = language
        self.api_key = api_key
        self.policy = policy or RetryPolicy()
        self.on_quota_wait = on_quota_wait
        self.on_quota_resume = on_quota_resume
        self.sleep = sleep
        self.calls = 0
        self.max_depth = 0

    async def _translate(self, text: str, max_attempts: int | None = None) -> str:
        self.calls += 1
        return await translate_with_retry(
            self.translator,
            text,
            self.language,
            self.api_key,
            policy=self.policy,
            on_quota_wait=self.on_quota_wait,
            on_quota_resume=self.on_quota_resume,
            sleep=self.sleep,
            max_attempts=max_attempts,
        )

    async def resolve_group(self, group: list[Segment], depth: int = 0) -> list[str]:
        """
        Translate ``group`` and return one string per segment, in order.

        QuotaExhaustedError and AuthError propagate; every other failure
        keeps the source text for the affected segments.
        """
        self.max_depth = max(self.max_depth, depth)
        sources = [seg.text for seg in group]
        try:
            translated = await self._translate(DELIMITER.join(sources))
        except (QuotaExhaustedError, AuthError):
            raise
        except TruncatedError as e:
            logger.info(f"Truncated response for {len(group)} segments at depth {depth}: {e}")
            if len(group) == 1:
                return await self._resolve_single(group[0])
            return await self._split(group, depth)
        except TranslationError as e:
            logger.error(f"Keeping source text for segments {group[0].id}-{group[-1].id}: {e}")
            return list(sources)

        parts = [p.strip() for p in translated.split(DELIMITER)]
        return repair_alignment(parts, sources, where=f"segments {group[0].id}-{group[-1].id}")

    async def _resolve_single(self, segment: Segment) -> list[str]:
        try:
            translated = await self._translate(segment.text, max_attempts=self.policy.single_segment_attempts)
        except (QuotaExhaustedError, AuthError):
            raise
        except TranslationError as e:
            logger.warning(f"Segment {segment.id} left untranslated: {e}")
            return [segment.text]
        return repair_alignment([translated.strip()], [segment.text], where=f"segment {segment.id}")

    async def _split(self, group: list[Segment], depth: int) -> list[str]:
        mid = (len(group) + 1) // 2
        halves = await asyncio.gather(
            self.resolve_group(group[:mid], depth + 1),
            self.resolve_group(group[mid:], depth + 1),
            return_exceptions=True,
        )
        for half in halves:
            if isinstance(half, BaseException):
                raise half
        combined = halves[0] + halves[1]
        return repair_alignment(combined, [seg.text for seg in group], where=f"split at depth {depth}")
