"""
Text recognition backed by the `tesseract` command-line engine.

The image is piped to the engine on stdin and the text read back from
stdout, so nothing touches the filesystem:

    tesseract stdin stdout -l chi_sim
"""

from typing import Dict, List, Optional
import logging
import subprocess

from .base import ServiceError, TextRecognizer


logger = logging.getLogger(__name__)

# BCP-47 tag → tesseract traineddata name
LANGUAGE_CODES: Dict[str, str] = {
    "zh-hans": "chi_sim",
    "zh-cn": "chi_sim",
    "zh": "chi_sim",
    "zh-hant": "chi_tra",
    "zh-tw": "chi_tra",
    "en-us": "eng",
    "en-gb": "eng",
    "en": "eng",
    "ja": "jpn",
    "ja-jp": "jpn",
    "ko": "kor",
    "ko-kr": "kor",
    "fr": "fra",
    "de": "deu",
    "es": "spa",
}


def tesseract_language(language: Optional[str], fallback: str = "eng") -> str:
    """
    Map a BCP-47 tag onto a tesseract language name.

        >>> tesseract_language("zh-Hans")
        'chi_sim'
        >>> tesseract_language("en_US")
        'eng'

    Unknown tags fall back to their primary subtag, then to `fallback`.
    """
    if not language:
        return fallback
    tag = language.strip().lower().replace("_", "-")
    if tag in LANGUAGE_CODES:
        return LANGUAGE_CODES[tag]
    return LANGUAGE_CODES.get(tag.split("-", 1)[0], fallback)


class TesseractRecognizer(TextRecognizer):
    """
    TextRecognizer that shells out to tesseract.

    Args:
        command: Path or name of the tesseract executable.
        timeout: Seconds before a stuck engine is killed.
        extra_args: Additional arguments, e.g. ["--psm", "6"].
    """

    def __init__(
        self,
        command: str = "tesseract",
        timeout: float = 30.0,
        extra_args: Optional[List[str]] = None,
    ):
        self.command = command
        self.timeout = timeout
        self.extra_args = list(extra_args or [])

    def build_command(self, language: Optional[str]) -> List[str]:
        return [
            self.command, "stdin", "stdout",
            "-l", tesseract_language(language),
            *self.extra_args,
        ]

    def recognize(self, image: bytes, language: Optional[str] = None) -> str:
        cmd = self.build_command(language)
        logger.debug(f"Running {' '.join(cmd)} on {len(image)} bytes")

        try:
            completed = subprocess.run(
                cmd,
                input=image,
                capture_output=True,
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise ServiceError(f"OCR engine not found: {self.command}")
        except subprocess.TimeoutExpired:
            raise ServiceError(f"OCR engine timed out after {self.timeout}s")

        if completed.returncode != 0:
            stderr = completed.stderr.decode("utf-8", errors="replace").strip()
            logger.warning(f"tesseract exited with {completed.returncode}: {stderr}")
            raise ServiceError(stderr or f"OCR engine exited with status {completed.returncode}")

        text = completed.stdout.decode("utf-8", errors="replace").strip()
        if not text:
            raise ServiceError("No text recognized")
        return text
