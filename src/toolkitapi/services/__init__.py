"""
=============================================================================
EXTERNAL COLLABORATORS
=============================================================================

Capabilities the API exposes but does not implement itself.

    # Recognize with the local tesseract install
    from toolkitapi.services import TesseractRecognizer

    recognizer = TesseractRecognizer(command="/usr/local/bin/tesseract")
    text = recognizer.recognize(png_bytes, "en-US")

    # Any object with recognize(image, language) works, sync or async
    class MyRecognizer(TextRecognizer):
        async def recognize(self, image, language=None):
            ...

=============================================================================
"""

from .base import (
    SUPPORTED_LANGUAGES,
    ServiceError,
    SpeechSynthesizer,
    SpeechTranscriber,
    TextRecognizer,
    resolve,
)
from .tesseract import TesseractRecognizer, tesseract_language
from .unavailable import UnavailableRecognizer, UnavailableSynthesizer, UnavailableTranscriber

__all__ = [
    "SUPPORTED_LANGUAGES",
    "ServiceError",
    "SpeechSynthesizer",
    "SpeechTranscriber",
    "TextRecognizer",
    "resolve",
    "TesseractRecognizer",
    "tesseract_language",
    "UnavailableRecognizer",
    "UnavailableSynthesizer",
    "UnavailableTranscriber",
]
