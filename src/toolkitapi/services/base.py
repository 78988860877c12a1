"""
=============================================================================
COLLABORATOR CONTRACTS
=============================================================================

The HTTP core never recognizes text or produces speech itself. It calls
out to collaborators behind three narrow interfaces:

    ┌───────────────────────┬──────────────────────────────────────────────┐
    │ Interface             │ Contract                                     │
    ├───────────────────────┼──────────────────────────────────────────────┤
    │ TextRecognizer        │ recognize(image, language) -> str           │
    │ SpeechSynthesizer     │ synthesize(text, language) -> bytes          │
    │ SpeechTranscriber     │ transcribe(audio) -> str                     │
    └───────────────────────┴──────────────────────────────────────────────┘

=============================================================================
SYNC, ASYNC, OR FUTURE
=============================================================================

An implementation may answer in any of three shapes:

    1. a plain value                 → used as-is
    2. a coroutine                   → run to completion in the caller's thread
    3. a concurrent.futures.Future   → waited on

resolve() turns all three into exactly one value or exactly one raised
exception. Each connection runs in its own thread, so waiting here only
parks that connection; the accept loop and the other connections carry on.

=============================================================================
"""

from abc import ABC, abstractmethod
from concurrent.futures import Future
from typing import Any, Optional
import asyncio
import inspect


SUPPORTED_LANGUAGES = ("zh-Hans", "en-US")


class ServiceError(Exception):
    """A collaborator could not produce a result."""


def resolve(result: Any, timeout: Optional[float] = None) -> Any:
    """
    Collapse a collaborator's answer into a single value.

    Args:
        result: Plain value, coroutine, or concurrent.futures.Future.
        timeout: Seconds to wait on a Future (None waits forever).

    Returns:
        The resolved value.

    Raises:
        Whatever the coroutine or future raised, exactly once.
    """
    if inspect.iscoroutine(result):
        # Connection threads never have a running loop of their own
        return asyncio.run(result)
    if isinstance(result, Future):
        return result.result(timeout=timeout)
    return result


class TextRecognizer(ABC):
    """Recognizes text in an encoded image (PNG, JPEG, ...)."""

    @abstractmethod
    def recognize(self, image: bytes, language: Optional[str] = None) -> Any:
        """
        Recognize the text in `image`.

        Args:
            image: Raw encoded image bytes as uploaded.
            language: BCP-47 hint such as "zh-Hans" or "en-US".

        Returns:
            The recognized text (or a coroutine / Future resolving to it).

        Raises:
            ServiceError: If nothing could be recognized.
        """


class SpeechSynthesizer(ABC):
    """Turns text into encoded audio."""

    @abstractmethod
    def synthesize(self, text: str, language: str) -> Any:
        """Return audio bytes (or a coroutine / Future resolving to them)."""


class SpeechTranscriber(ABC):
    """Turns encoded audio into text."""

    @abstractmethod
    def transcribe(self, audio: bytes) -> Any:
        """Return the transcript (or a coroutine / Future resolving to it)."""
