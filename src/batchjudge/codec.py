"""
Base64 transport codec for Judge0 payload fields.
"""

from __future__ import annotations

import base64
import typing as t


def encode(text: str) -> str:
    """
    Encode text as standard base64 over its UTF-8 bytes.

    Parameters
    ----------
    text : str
        Text to send on the wire.

    Returns
    -------
    str
        ASCII base64 representation.
    """
    return base64.b64encode(s=text.encode("utf-8")).decode("ascii")


@t.overload
def decode(wire: str) -> str: ...


@t.overload
def decode(wire: None) -> None: ...


def decode(wire: str | None) -> str | None:
    """
    Decode a base64 wire field back to text.

    Parameters
    ----------
    wire : str | None
        Base64 field as returned by the backend, or ``None`` when the field
        was omitted.

    Returns
    -------
    str | None
        Decoded text, or ``None`` when ``wire`` is ``None``.

    Notes
    -----
    Line breaks inserted by the backend inside the base64 text are ignored.
    Program output is not guaranteed to be valid UTF-8, so undecodable bytes
    are replaced instead of raising.
    """
    if wire is None:
        return None
    raw = base64.b64decode(s="".join(wire.split()))
    return raw.decode("utf-8", errors="replace")
