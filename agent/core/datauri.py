from __future__ import annotations

"""Strict parsing of ``data:`` URIs carrying base64 image attachments.

Only the ``data:<mime>;base64,<payload>`` form is accepted. Anything else
raises :class:`MalformedDataURI` instead of failing somewhere downstream.
"""

import base64
import binascii
import re
from dataclasses import dataclass


_MIME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9!#$&^_.+-]*/[A-Za-z0-9][A-Za-z0-9!#$&^_.+-]*$")


class MalformedDataURI(ValueError):
    """Raised when a string is not a well-formed base64 data-URI."""


@dataclass(frozen=True)
class DataURI:
    mime_type: str
    data: bytes

    @property
    def base64_data(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def as_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_data}"


def parse_data_uri(value: str) -> DataURI:
    if not isinstance(value, str):
        raise MalformedDataURI(f"expected a string, got {type(value).__name__}")

    scheme, sep, rest = value.partition(":")
    if not sep or scheme.strip().lower() != "data":
        raise MalformedDataURI("missing 'data:' scheme")

    header, sep, payload = rest.partition(",")
    if not sep:
        raise MalformedDataURI("missing ',' between header and payload")

    params = header.split(";")
    mime_type = params[0].strip().lower()
    if not _MIME_RE.match(mime_type):
        raise MalformedDataURI(f"invalid mime type: {mime_type!r}")
    if "base64" not in (p.strip().lower() for p in params[1:]):
        raise MalformedDataURI("only base64 data-URIs are supported")

    payload = payload.strip()
    if not payload:
        raise MalformedDataURI("empty payload")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise MalformedDataURI(f"payload is not valid base64: {exc}") from exc

    return DataURI(mime_type=mime_type, data=data)


def encode_data_uri(mime_type: str, data: bytes) -> str:
    return DataURI(mime_type=mime_type, data=data).as_uri()
