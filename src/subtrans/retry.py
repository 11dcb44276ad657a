"""
Retry and quota control around a single translation call.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from .errors import (
    QUOTA_COOLDOWN_SECONDS,
    AuthError,
    QuotaError,
    QuotaExhaustedError,
    TransientError,
    TruncatedError,
)
from .translation import Translator

logger = logging.getLogger("subtrans")

SleepFunc = Callable[[float], Awaitable[None]]
QuotaWaitCallback = Callable[[float], None]
QuotaResumeCallback = Callable[[], None]


@dataclass(frozen=True)
class RetryPolicy:
    """Tunables for translate_with_retry and the chunk splitter."""

    max_attempts: int = 3
    quota_cooldown: float = QUOTA_COOLDOWN_SECONDS
    backoff_base: float = 2.0
    # short inputs that keep failing are most likely an unreported rate limit
    short_text_threshold: int = 120
    short_text_failures: int = 2
    single_segment_attempts: int = 5


async def translate_with_retry(
    translator: Translator,
    text: str,
    language: str,
    api_key: str,
    policy: RetryPolicy | None = None,
    on_quota_wait: QuotaWaitCallback | None = None,
    on_quota_resume: QuotaResumeCallback | None = None,
    sleep: SleepFunc = asyncio.sleep,
    max_attempts: int | None = None,
) -> str:
    """
    Translate with bounded retries.

    - AuthError and TruncatedError propagate at once.
    - QuotaError waits the fixed cool-down and retries the same request;
      on the last attempt it becomes QuotaExhaustedError.
    - TransientError backs off ``backoff_base ** attempt`` seconds; once
      attempts run out it propagates.
    - Repeated TransientError on a short input escalates to the quota wait
      while attempts remain.
    """
    policy = policy or RetryPolicy()
    attempts = max(1, max_attempts or policy.max_attempts)
    transient_streak = 0

    for attempt in range(attempts):
        last = attempt == attempts - 1
        try:
            result = await translator.translate(text, language, api_key)
            if attempt:
                logger.info(f"Translation succeeded on attempt {attempt + 1}/{attempts}")
            return result
        except (AuthError, TruncatedError):
            raise
        except QuotaError as e:
            transient_streak = 0
            if last:
                logger.error(f"Quota still exhausted after {attempts} attempts: {e}")
                raise QuotaExhaustedError(str(e), retry_after=policy.quota_cooldown) from e
            logger.warning(f"Quota hit on attempt {attempt + 1}/{attempts}: {e}")
        except TransientError as e:
            transient_streak += 1
            probable_quota = (
                len(text) < policy.short_text_threshold
                and transient_streak >= policy.short_text_failures
            )
            if last:
                logger.error(f"Translation failed after {attempts} attempts: {e}")
                raise
            if not probable_quota:
                delay = policy.backoff_base ** attempt
                logger.warning(
                    f"Transient error on attempt {attempt + 1}/{attempts}, retrying in {delay:.0f}s: {e}"
                )
                await sleep(delay)
                continue
            logger.warning(
                f"{transient_streak} consecutive failures on a {len(text)}-char input, "
                f"treating as an unreported rate limit: {e}"
            )
            transient_streak = 0

        if on_quota_wait:
            on_quota_wait(policy.quota_cooldown)
        logger.info(f"Waiting {policy.quota_cooldown:.0f}s for quota to reset...")
        await sleep(policy.quota_cooldown)
        if on_quota_resume:
            on_quota_resume()

    # unreachable: the last attempt always returns or raises
    raise TransientError("No translation attempts were made")
