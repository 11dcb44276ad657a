"""
Shared fakes for translation tests: no network, no real clock.
"""

from src.subtrans.models import Segment
from src.subtrans.translation import DELIMITER, Translator

VALID_KEY = "AIzaSy" + "x" * 33


class FakeTranslator(Translator):
    """Translator whose raw responses come from a callable.

    ``responder(text, call_no)`` returns the response text or raises.
    """

    def __init__(self, responder=None):
        self.responder = responder or (lambda text, n: DELIMITER.join(f"T:{p}" for p in text.split(DELIMITER)))
        self.translate_calls = 0
        self.request_calls = 0
        self.texts: list[str] = []

    async def translate(self, text, language, api_key):
        self.translate_calls += 1
        return await super().translate(text, language, api_key)

    async def request(self, text, language, api_key):
        self.request_calls += 1
        self.texts.append(text)
        return self.responder(text, self.request_calls)


class RecordingSleep:
    """Stand-in for asyncio.sleep that records durations."""

    def __init__(self):
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


def make_segments(texts: list[str]) -> list[Segment]:
    return [
        Segment(id=i, timestamp=f"00:00:{i:02},000 --> 00:00:{i:02},900", text=t)
        for i, t in enumerate(texts, 1)
    ]


def word_count(text: str) -> int:
    return len(text.split())
