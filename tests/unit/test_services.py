"""
Unit tests for the collaborator services.
"""

import subprocess
from concurrent.futures import Future, ThreadPoolExecutor

import pytest

from toolkitapi.services import (
    SUPPORTED_LANGUAGES,
    ServiceError,
    TesseractRecognizer,
    UnavailableRecognizer,
    UnavailableSynthesizer,
    UnavailableTranscriber,
    resolve,
    tesseract_language,
)


class TestResolve:
    """Tests for resolve()."""

    def test_plain_value(self):
        assert resolve("text") == "text"

    def test_coroutine(self):
        async def produce():
            return "from coroutine"

        assert resolve(produce()) == "from coroutine"

    def test_coroutine_error(self):
        async def fail():
            raise ServiceError("nope")

        with pytest.raises(ServiceError, match="nope"):
            resolve(fail())

    def test_future(self):
        with ThreadPoolExecutor(max_workers=1) as pool:
            assert resolve(pool.submit(lambda: "from future")) == "from future"

    def test_future_error_raised_once(self):
        future = Future()
        future.set_exception(ServiceError("broken"))

        with pytest.raises(ServiceError, match="broken"):
            resolve(future)


class TestUnavailable:
    """The placeholder services always fail the same way."""

    def test_recognizer(self):
        with pytest.raises(ServiceError, match="Not implemented yet"):
            UnavailableRecognizer().recognize(b"img", "en-US")

    def test_synthesizer(self):
        with pytest.raises(ServiceError, match="Not implemented yet"):
            UnavailableSynthesizer().synthesize("hello", "en-US")

    def test_transcriber(self):
        with pytest.raises(ServiceError, match="Not implemented yet"):
            UnavailableTranscriber().transcribe(b"audio")

    def test_supported_languages(self):
        assert SUPPORTED_LANGUAGES == ("zh-Hans", "en-US")


class TestTesseractLanguage:
    """Tests for BCP-47 → tesseract language mapping."""

    @pytest.mark.parametrize("tag,expected", [
        ("zh-Hans", "chi_sim"),
        ("zh-Hant", "chi_tra"),
        ("en-US", "eng"),
        ("en_US", "eng"),
        ("en", "eng"),
        ("fr-CA", "fra"),
        ("xx-YY", "eng"),
        (None, "eng"),
        ("", "eng"),
    ])
    def test_mapping(self, tag, expected):
        assert tesseract_language(tag) == expected


def completed(returncode: int = 0, stdout: bytes = b"", stderr: bytes = b""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestTesseractRecognizer:
    """Tests for TesseractRecognizer with subprocess.run stubbed out."""

    def test_command(self):
        recognizer = TesseractRecognizer(command="/opt/tesseract", extra_args=["--psm", "6"])

        assert recognizer.build_command("zh-Hans") == [
            "/opt/tesseract", "stdin", "stdout", "-l", "chi_sim", "--psm", "6",
        ]

    def test_success(self, monkeypatch):
        calls = []

        def fake_run(cmd, **kwargs):
            calls.append((cmd, kwargs))
            return completed(stdout=b"  HELLO\n\n")

        monkeypatch.setattr(subprocess, "run", fake_run)

        text = TesseractRecognizer().recognize(b"png-bytes", "en-US")

        assert text == "HELLO"
        cmd, kwargs = calls[0]
        assert cmd[-2:] == ["-l", "eng"]
        assert kwargs["input"] == b"png-bytes"

    def test_empty_output(self, monkeypatch):
        monkeypatch.setattr(subprocess, "run", lambda cmd, **kw: completed(stdout=b"\n"))

        with pytest.raises(ServiceError, match="No text recognized"):
            TesseractRecognizer().recognize(b"png")

    def test_nonzero_exit(self, monkeypatch):
        monkeypatch.setattr(
            subprocess, "run",
            lambda cmd, **kw: completed(returncode=1, stderr=b"Error in pixReadMem"),
        )

        with pytest.raises(ServiceError, match="pixReadMem"):
            TesseractRecognizer().recognize(b"png")

    def test_missing_binary(self, monkeypatch):
        def fake_run(cmd, **kwargs):
            raise FileNotFoundError(cmd[0])

        monkeypatch.setattr(subprocess, "run", fake_run)

        with pytest.raises(ServiceError, match="not found"):
            TesseractRecognizer(command="no-such-tesseract").recognize(b"png")

    def test_timeout(self, monkeypatch):
        def fake_run(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, kwargs["timeout"])

        monkeypatch.setattr(subprocess, "run", fake_run)

        with pytest.raises(ServiceError, match="timed out"):
            TesseractRecognizer(timeout=0.1).recognize(b"png")
