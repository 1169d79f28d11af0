from __future__ import annotations

import pytest
from langchain_core.messages import AIMessage

from agent.agent import build_llm, build_messages, response_text, run_relay
from agent.core.datauri import MalformedDataURI
from config.settings import get_settings


def test_build_messages_starts_fresh_every_time():
    first = build_messages("satu", None)
    second = build_messages("dua", None)

    assert len(first) == len(second) == 3
    assert first[:2] == second[:2]
    assert second[-1].content == [{"type": "text", "text": "dua"}]


def test_build_messages_requires_content():
    with pytest.raises(ValueError):
        build_messages("", None)


def test_build_messages_rejects_bad_image():
    with pytest.raises(MalformedDataURI):
        build_messages("lihat", "data:image/png;base64")


def test_build_llm_requires_key():
    with pytest.raises(RuntimeError):
        build_llm(get_settings())


def test_response_text_joins_text_parts():
    result = AIMessage(content=["Halo ", {"type": "text", "text": "dunia"}, {"type": "other"}])
    assert response_text(result) == "Halo dunia"


def test_run_relay_returns_plain_text():
    class Echo:
        def invoke(self, messages):
            return AIMessage(content=f"{len(messages)} turns")

    assert run_relay(Echo(), build_messages("x", None)) == "3 turns"
