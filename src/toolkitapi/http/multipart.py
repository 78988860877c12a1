"""
=============================================================================
MULTIPART/FORM-DATA DECODER
=============================================================================

Extracts the uploaded image (and an optional language field) from a
multipart/form-data body.

=============================================================================
MULTIPART BODY ANATOMY
=============================================================================

    Content-Type: multipart/form-data; boundary=XyZ

    ┌─────────────────────────────────────────────────────────────────────┐
    │  --XyZ\r\n                                   ← delimiter            │
    │  Content-Disposition: form-data; name="image"; filename="a.png"\r\n│
    │  Content-Type: image/png\r\n                                        │
    │  \r\n                                        ← part separator       │
    │  \x89PNG\r\n\x1a\n ... binary ... \r\n       ← part body + CRLF     │
    │  --XyZ\r\n                                                          │
    │  Content-Disposition: form-data; name="language"\r\n               │
    │  \r\n                                                               │
    │  en-US\r\n                                                          │
    │  --XyZ--\r\n                                 ← closing delimiter    │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
DECODING RULES
=============================================================================

1. Split the body on every literal "--{boundary}" (byte matching, no regex).
   Empty fragments are dropped.
2. A fragment without its own \r\n\r\n is skipped (the closing "--\r\n"
   and any preamble fall out here).
3. Part headers are parsed like request headers.
4. FILE part: first part whose Content-Disposition mentions "filename"
   or "image". One trailing CRLF is stripped; the rest is kept as-is.
5. LANGUAGE part: first part whose Content-Disposition contains
   name="language". Decoded as text and trimmed.
6. No file part at all → MissingImagePart. No language is fine.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional

from ..errors import MissingImagePart
from .request import HEADER_SEPARATOR, parse_header_lines


CRLF = b"\r\n"


@dataclass
class MultipartPart:
    """One section of a multipart body: its headers and raw body bytes."""

    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def disposition(self) -> str:
        return self.headers.get("content-disposition", "")

    @property
    def is_file(self) -> bool:
        disposition = self.disposition
        return "filename" in disposition or "image" in disposition

    @property
    def is_language(self) -> bool:
        return 'name="language"' in self.disposition


@dataclass
class MultipartForm:
    """What the OCR endpoint needs from a multipart upload."""

    image: bytes
    language: Optional[str] = None


def extract_boundary(content_type: str) -> Optional[str]:
    """
    Pull the boundary token out of a Content-Type header value.

    Takes everything after "boundary=" up to the next ";" (or the end).

        >>> extract_boundary("multipart/form-data; boundary=XyZ")
        'XyZ'
        >>> extract_boundary('multipart/form-data; boundary="XyZ"; charset=utf-8')
        'XyZ'

    Returns:
        The boundary, or None if the parameter is missing or empty.
    """
    _, found, rest = content_type.partition("boundary=")
    if not found:
        return None
    boundary = rest.split(";", 1)[0].strip()
    if len(boundary) >= 2 and boundary[0] == boundary[-1] == '"':
        boundary = boundary[1:-1]
    return boundary or None


def iter_parts(body: bytes, boundary: str) -> Iterator[MultipartPart]:
    """
    Yield every well-formed part of a multipart body, in order.

    Args:
        body: The raw request body.
        boundary: Boundary token from the Content-Type header.
    """
    delimiter = b"--" + boundary.encode("utf-8")

    for fragment in body.split(delimiter):
        if not fragment:
            continue

        header_end = fragment.find(HEADER_SEPARATOR)
        if header_end == -1:
            continue  # Preamble, closing "--", or garbage

        # The fragment starts with the CRLF that ended the delimiter line
        header_text = fragment[:header_end].decode("utf-8", errors="replace")
        yield MultipartPart(
            headers=parse_header_lines(header_text.split("\r\n")),
            body=fragment[header_end + len(HEADER_SEPARATOR):],
        )


def decode(body: bytes, boundary: str) -> MultipartForm:
    """
    Extract the image bytes and optional language from a multipart body.

    Args:
        body: The raw request body.
        boundary: Boundary token from the Content-Type header.

    Returns:
        MultipartForm with the image payload and language (or None).

    Raises:
        MissingImagePart: If no part looks like a file upload.
    """
    image: Optional[bytes] = None
    language: Optional[str] = None

    for part in iter_parts(body, boundary):
        if image is None and part.is_file:
            payload = part.body
            if payload.endswith(CRLF):
                payload = payload[:-len(CRLF)]
            image = payload
        elif language is None and part.is_language:
            language = part.body.decode("utf-8", errors="replace").strip()

    if image is None:
        raise MissingImagePart()

    return MultipartForm(image=image, language=language or None)
