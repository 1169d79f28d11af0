from __future__ import annotations

import pytest

from agent.core.datauri import DataURI, MalformedDataURI, encode_data_uri, parse_data_uri


def test_parse_valid_uri():
    parsed = parse_data_uri("data:image/jpeg;base64,aGVsbG8=")

    assert parsed == DataURI(mime_type="image/jpeg", data=b"hello")
    assert parsed.base64_data == "aGVsbG8="


def test_encode_matches_browser_format():
    assert encode_data_uri("image/png", b"hello") == "data:image/png;base64,aGVsbG8="


@pytest.mark.parametrize(
    "value",
    [
        "aGVsbG8=",  # no ':' at all
        "image/png;base64,aGVsbG8=",
        "http:image/png;base64,aGVsbG8=",
        "data:image/png;base64",  # no ','
        "data:;base64,aGVsbG8=",
        "data:image/png,aGVsbG8=",  # not base64
        "data:image/png;base64,",
        "data:image/png;base64,***",
    ],
)
def test_malformed_uris_raise(value):
    with pytest.raises(MalformedDataURI):
        parse_data_uri(value)


def test_non_string_raises():
    with pytest.raises(MalformedDataURI):
        parse_data_uri(None)
