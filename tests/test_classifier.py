from __future__ import annotations

import asyncio

import pytest
from ollama import ResponseError

from cloud_assistant.adapter import LLMAdapter, LLMError
from cloud_assistant.classifier import LLMClassifier, build_system_prompt
from cloud_assistant.prompts import NO_TOOLS

from conftest import FakeOllama


def _reply(client, **kwargs):
    return asyncio.run(LLMAdapter("llama3.1", client=client, **kwargs).reply("system", "user"))


def test_reply_is_stripped():
    client = FakeOllama("  USE_EC2 USE_EXCEL \n")
    assert _reply(client, temperature=0.1) == "USE_EC2 USE_EXCEL"
    assert client.calls[0]["model"] == "llama3.1"
    assert client.calls[0]["options"] == {"temperature": 0.1, "num_predict": 300}


def test_empty_reply_is_retried_with_a_nudge():
    client = FakeOllama("", "USE_S3")
    assert _reply(client) == "USE_S3"
    assert len(client.calls) == 2
    assert client.calls[1]["messages"][-1]["role"] == "system"


def test_missing_content_counts_as_empty():
    client = FakeOllama(None, "USE_S3")
    assert _reply(client) == "USE_S3"


def test_persistent_empty_reply_raises():
    with pytest.raises(LLMError, match="after 2 attempts"):
        _reply(FakeOllama("   "))


def test_raw_text_is_recovered_from_response_error():
    client = FakeOllama(ResponseError("error parsing tool call: raw='USE_S3', err=invalid"))
    assert _reply(client) == "USE_S3"
    assert len(client.calls) == 1


def test_unreachable_ollama_raises_llm_error():
    client = FakeOllama(ConnectionError("refused"))
    with pytest.raises(LLMError, match="Could not reach Ollama"):
        _reply(client)
    assert len(client.calls) == 1


def test_reply_does_not_block_the_event_loop():
    client = FakeOllama("USE_EC2", delay=0.3)
    adapter = LLMAdapter("m", client=client)

    async def scenario():
        ticks = 0
        done = asyncio.Event()

        async def ticker():
            nonlocal ticks
            while not done.is_set():
                await asyncio.sleep(0.02)
                ticks += 1

        task = asyncio.create_task(ticker())
        reply = await adapter.reply("system", "user")
        done.set()
        await task
        return reply, ticks

    reply, ticks = asyncio.run(scenario())
    assert reply == "USE_EC2"
    assert ticks >= 5


def test_system_prompt_lists_available_tools():
    prompt = build_system_prompt({"ec2": ["listEC2: List EC2 instances"], "s3": [], "file": ["writeExcel: Write"]})
    assert "EC2 tools: listEC2: List EC2 instances" in prompt
    assert f"S3 tools: {NO_TOOLS}" in prompt
    assert "File tools: writeExcel: Write" in prompt
    for token in ("USE_EC2", "USE_S3", "CREATE_S3", "USE_EXCEL", "PutObjectInS3"):
        assert token in prompt


def test_classifier_quotes_the_user_request():
    client = FakeOllama("USE_S3")
    classifier = LLMClassifier(LLMAdapter("m", client=client))
    assert asyncio.run(classifier.classify("List S3 buckets", {})) == "USE_S3"
    assert client.calls[0]["messages"][1] == {"role": "user", "content": 'User request: "List S3 buckets"'}
    assert NO_TOOLS in client.calls[0]["messages"][0]["content"]
