"""
Unit Tests for the Hosted Model Client

The OpenAI SDK client is replaced by a stub exposing chat.completions.create.
"""

import pytest
import sys
import os
from types import SimpleNamespace

project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
sys.path.insert(0, os.path.join(project_root, "codegym_ai", "src"))

from openai import OpenAIError

from codegym_ai.errors import ModelError
from codegym_ai.llm_client import LLMClient, parse_json_reply


class StubCompletions:
    def __init__(self, content=None, error=None, choices=True):
        self.content = content
        self.error = error
        self.choices = choices
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        if self.error is not None:
            raise self.error
        if not self.choices:
            return SimpleNamespace(choices=[])
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def make_client(completions, **kwargs):
    stub = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return LLMClient(api_key="test-key", client=stub, **kwargs)


class TestParseJsonReply:

    def test_plain_json(self):
        assert parse_json_reply('{"answer": "hi"}') == {"answer": "hi"}

    def test_fenced_json(self):
        assert parse_json_reply('```json\n{"status": "correct"}\n```') == {"status": "correct"}

    def test_prefixed_json(self):
        assert parse_json_reply('Here you go: {"a": 1} hope it helps') == {"a": 1}

    @pytest.mark.parametrize("content", [None, "", "   ", "no json here", "{broken"])
    def test_unparseable(self, content):
        with pytest.raises(ValueError):
            parse_json_reply(content)


class TestCompleteJson:

    @pytest.mark.asyncio
    async def test_sends_json_mode_request(self):
        completions = StubCompletions(content='{"feedback": "ok", "suggestions": "none"}')
        client = make_client(completions, model="gpt-4o-mini", max_tokens=900, temperature=0.2)

        result = await client.complete_json("check-code", "system text", "user text")

        assert result == {"feedback": "ok", "suggestions": "none"}
        assert completions.kwargs["model"] == "gpt-4o-mini"
        assert completions.kwargs["response_format"] == {"type": "json_object"}
        assert completions.kwargs["max_tokens"] == 900
        assert completions.kwargs["temperature"] == 0.2
        assert completions.kwargs["messages"] == [
            {"role": "system", "content": "system text"},
            {"role": "user", "content": "user text"},
        ]

    @pytest.mark.asyncio
    async def test_max_tokens_override(self):
        completions = StubCompletions(content='{"answer": "x"}')
        client = make_client(completions)

        await client.complete_json("chatbot", "s", "p", max_tokens=500)

        assert completions.kwargs["max_tokens"] == 500

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_model_error(self):
        client = make_client(StubCompletions(error=OpenAIError("connection reset")))

        with pytest.raises(ModelError) as exc:
            await client.complete_json("run-code", "s", "p")

        assert exc.value.flow == "run-code"
        assert "OpenAIError" in exc.value.reason

    @pytest.mark.asyncio
    async def test_no_choices(self):
        client = make_client(StubCompletions(choices=False))

        with pytest.raises(ModelError):
            await client.complete_json("chatbot", "s", "p")

    @pytest.mark.asyncio
    async def test_non_json_reply(self):
        client = make_client(StubCompletions(content="I cannot help with that."))

        with pytest.raises(ModelError) as exc:
            await client.complete_json("generate-problem", "s", "p")

        assert "not JSON" in exc.value.reason
