import pytest
from llm.llm_client import LLMClient, get_provider
from llm.providers.groq_provider import GroqProvider
from llm.providers.mock_provider import MockProvider

def test_chat_passes_messages(fake_provider_factory):
    provider = fake_provider_factory("hello")
    client = LLMClient(provider=provider)
    assert client.chat([{"role": "user", "content": "hi"}]) == "hello"
    assert provider.calls[0][-1]["content"] == "hi"

def test_split_reply_extracts_block():
    text = 'Sure!\n\n---JSON---\n{"actions":[{"type":"todo","title":"A","content":"A"}]}\n---END---'
    reply, payload = LLMClient.split_reply(text)
    assert reply == "Sure!"
    assert payload["actions"][0]["title"] == "A"

def test_split_reply_code_fence_inside_block():
    text = 'Ok\n---JSON---\n```json\n{"actions": []}\n```\n---END---'
    reply, payload = LLMClient.split_reply(text)
    assert reply == "Ok"
    assert payload == {"actions": []}

def test_split_reply_invalid_json():
    reply, payload = LLMClient.split_reply("Hi\n---JSON---\nNOT JSON\n---END---")
    assert reply == "Hi"
    assert payload is None

def test_split_reply_without_block():
    assert LLMClient.split_reply("Just chatting") == ("Just chatting", None)

def test_get_provider_mock():
    assert isinstance(get_provider("mock"), MockProvider)

def test_get_provider_unknown():
    with pytest.raises(RuntimeError):
        get_provider("nope")

def test_groq_provider_requires_key(monkeypatch):
    monkeypatch.delenv("GROQ_API_KEY", raising=False)
    with pytest.raises(RuntimeError):
        GroqProvider()

def test_mock_provider_reply_has_actions():
    text = MockProvider().chat(
        [{"role": "system", "content": "s"}, {"role": "user", "content": "I need to buy milk"}]
    )
    reply, payload = LLMClient.split_reply(text)
    assert reply
    assert payload["actions"][0]["type"] == "todo"
