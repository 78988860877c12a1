"""Placeholder collaborators for capabilities with no backend on this machine."""

from typing import Optional

from .base import ServiceError, SpeechSynthesizer, SpeechTranscriber, TextRecognizer


NOT_IMPLEMENTED = "Not implemented yet"


class UnavailableRecognizer(TextRecognizer):
    def recognize(self, image: bytes, language: Optional[str] = None) -> str:
        raise ServiceError(NOT_IMPLEMENTED)


class UnavailableSynthesizer(SpeechSynthesizer):
    def synthesize(self, text: str, language: str) -> bytes:
        raise ServiceError(NOT_IMPLEMENTED)


class UnavailableTranscriber(SpeechTranscriber):
    def transcribe(self, audio: bytes) -> str:
        raise ServiceError(NOT_IMPLEMENTED)
