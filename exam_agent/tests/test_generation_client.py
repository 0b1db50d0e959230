import httpx
import pytest
from openai import APIConnectionError

from exam_agent.models.schemas import EncodedAttachment, GenerationRequest
from exam_agent.services import generation as generation_mod
from exam_agent.services.generation import GenerationClient
from exam_agent.utils.errors import ProviderError


class _FakeMessage:
    def __init__(self, content):
        self.content = content


class _FakeChoice:
    def __init__(self, content):
        self.message = _FakeMessage(content)


class _FakeResponse:
    def __init__(self, content, choices=True):
        self.choices = [_FakeChoice(content)] if choices else []

    def to_dict(self):
        return {"choices": len(self.choices)}


class _FakeChatCompletions:
    def __init__(self, outcomes):
        self._outcomes = list(outcomes)
        self.calls = []

    def create(self, *args, **kwargs):  # noqa: ANN001, ANN002, ANN003
        self.calls.append(kwargs)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class _FakeClient:
    def __init__(self, outcomes):
        self.chat = type("Chat", (), {})()
        self.chat.completions = _FakeChatCompletions(outcomes)


def _client(monkeypatch, outcomes, **env):
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    for k, v in env.items():
        monkeypatch.setenv(k, v)
    client = GenerationClient()
    fake = _FakeClient(outcomes)
    monkeypatch.setattr(client, "_build_openai_client", lambda: fake)
    return client, fake


def _request():
    return GenerationRequest(
        instruction="MAKE AN EXAM",
        attachments=[
            EncodedAttachment(mime_type="image/png", base64_payload="AAA=", name="a.png"),
            EncodedAttachment(mime_type="application/pdf", base64_payload="BBB=", name="b.pdf"),
        ],
    )


def test_content_blocks_keep_instruction_first_and_attachment_order(monkeypatch):
    client, _ = _client(monkeypatch, [])
    blocks = client.content_blocks(_request())
    assert blocks[0] == {"type": "text", "text": "MAKE AN EXAM"}
    assert blocks[1] == {"type": "image_url", "image_url": {"url": "data:image/png;base64,AAA="}}
    assert blocks[2]["type"] == "file"
    assert blocks[2]["file"]["filename"] == "b.pdf"
    assert blocks[2]["file"]["file_data"] == "data:application/pdf;base64,BBB="


def test_generate_returns_text_and_sends_one_user_message(monkeypatch):
    client, fake = _client(monkeypatch, [_FakeResponse("```latex\nX\n```")], EXAM_MODEL="m-1")
    result = client.generate(_request())
    assert result.text == "```latex\nX\n```"
    calls = fake.chat.completions.calls
    assert len(calls) == 1
    assert calls[0]["model"] == "m-1"
    assert [m["role"] for m in calls[0]["messages"]] == ["user"]
    assert len(calls[0]["messages"][0]["content"]) == 3


def test_generate_empty_choices_is_empty_text(monkeypatch):
    client, _ = _client(monkeypatch, [_FakeResponse(None, choices=False)])
    assert client.generate(_request()).text == ""
    client, _ = _client(monkeypatch, [_FakeResponse(None)])
    assert client.generate(_request()).text == ""


def test_generate_requires_api_key(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr(generation_mod.get_settings(), "openai_api_key", None)
    with pytest.raises(ProviderError):
        GenerationClient().generate(_request())


def test_transport_errors_are_retried(monkeypatch):
    req = httpx.Request("POST", "https://example.invalid/v1/chat/completions")
    outcomes = [APIConnectionError(request=req), _FakeResponse("OK")]
    client, fake = _client(monkeypatch, outcomes, GENERATION_MAX_ATTEMPTS="2")
    monkeypatch.setattr(generation_mod, "wait_exponential", lambda **kw: (lambda rs: 0))
    assert client.generate(_request()).text == "OK"
    assert len(fake.chat.completions.calls) == 2


def test_exhausted_transport_retries_surface_provider_error(monkeypatch):
    req = httpx.Request("POST", "https://example.invalid/v1/chat/completions")
    outcomes = [APIConnectionError(request=req)]
    client, fake = _client(monkeypatch, outcomes, GENERATION_MAX_ATTEMPTS="1")
    with pytest.raises(ProviderError):
        client.generate(_request())
    assert len(fake.chat.completions.calls) == 1
