"""LLM client for the chat assistant and the AI visualization/analysis calls.

Talks to any OpenAI-compatible endpoint through the Responses API
(/v1/responses) and exposes it as a LangChain ChatModel, so callers can
use ``invoke`` and ``stream`` with LangChain messages. Everything that
calls the model goes through ``invoke_with_timeout`` and falls back to a
local result when the call fails; nothing in this module retries.
"""

from __future__ import annotations

import json
import os
import queue
import re
import threading
from typing import Any, Callable, Iterator, Optional

from dotenv import load_dotenv
from langchain_core.callbacks import CallbackManagerForLLMRun
from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, AIMessageChunk, BaseMessage, HumanMessage, SystemMessage
from langchain_core.outputs import ChatGeneration, ChatGenerationChunk, ChatResult
from openai import OpenAI

load_dotenv()

LLM_API_KEY = os.getenv("LLM_API_KEY", "")
LLM_BASE_URL = os.getenv("LLM_BASE_URL", "https://api.openai.com/v1")
DEFAULT_MODEL = os.getenv("DEFAULT_MODEL", "gpt-4o-mini")
VIZ_MODEL = os.getenv("VIZ_MODEL", DEFAULT_MODEL)
ANALYSIS_MODEL = os.getenv("ANALYSIS_MODEL", DEFAULT_MODEL)
AI_TIMEOUT_SECONDS = float(os.getenv("AI_TIMEOUT_SECONDS", "30"))


def is_configured() -> bool:
    """True when an API key is available for the hosted model."""
    return bool(LLM_API_KEY)


def _get_openai_client() -> OpenAI:
    return OpenAI(
        base_url=LLM_BASE_URL,
        api_key=LLM_API_KEY,
        timeout=AI_TIMEOUT_SECONDS,
    )


class ResponsesChatModel(BaseChatModel):
    """LangChain ChatModel backed by the OpenAI Responses API."""

    model: str = DEFAULT_MODEL
    temperature: float = 0.0

    @property
    def _llm_type(self) -> str:
        return "openai-responses"

    def _request(self, messages: list[BaseMessage]) -> dict[str, Any]:
        instructions, input_items = _messages_to_input(messages)
        req: dict[str, Any] = {
            "model": self.model,
            "input": input_items,
            "temperature": self.temperature,
        }
        if instructions:
            req["instructions"] = instructions
        return req

    def _generate(
        self,
        messages: list[BaseMessage],
        stop: Optional[list[str]] = None,
        run_manager: Optional[CallbackManagerForLLMRun] = None,
        **kwargs: Any,
    ) -> ChatResult:
        client = _get_openai_client()
        response = client.responses.create(**self._request(messages))
        return ChatResult(generations=[ChatGeneration(message=_parse_response(response))])

    def _stream(
        self,
        messages: list[BaseMessage],
        stop: Optional[list[str]] = None,
        run_manager: Optional[CallbackManagerForLLMRun] = None,
        **kwargs: Any,
    ) -> Iterator[ChatGenerationChunk]:
        client = _get_openai_client()
        stream = client.responses.create(**self._request(messages), stream=True)
        for event in stream:
            if getattr(event, "type", "") != "response.output_text.delta":
                continue
            chunk = ChatGenerationChunk(message=AIMessageChunk(content=event.delta))
            if run_manager:
                run_manager.on_llm_new_token(event.delta, chunk=chunk)
            yield chunk


def _messages_to_input(messages: list[BaseMessage]) -> tuple[str, list[dict]]:
    """Split LangChain messages into Responses API ``instructions`` + ``input``."""
    instructions = []
    items = []
    for msg in messages:
        if isinstance(msg, SystemMessage):
            instructions.append(str(msg.content))
        elif isinstance(msg, HumanMessage):
            items.append({"role": "user", "content": msg.content})
        elif isinstance(msg, AIMessage):
            items.append({"role": "assistant", "content": msg.content})
    return "\n\n".join(instructions), items


def _parse_response(response) -> AIMessage:
    content = getattr(response, "output_text", None)
    if content is None:
        content = ""
        for item in response.output:
            if item.type == "message":
                for block in item.content:
                    if hasattr(block, "text"):
                        content += block.text
    return AIMessage(content=content)


def get_llm(model: str | None = None, temperature: float = 0.0) -> ResponsesChatModel:
    """Create a ResponsesChatModel.

    Raises:
        ValueError: LLM_API_KEY is not set.
    """
    if not LLM_API_KEY:
        raise ValueError(
            "LLM_API_KEY not set. Add it to your .env file to enable the "
            "AI assistant; local fallbacks are used until then."
        )
    return ResponsesChatModel(model=model or DEFAULT_MODEL, temperature=temperature)


def invoke_with_timeout(fn: Callable, args: tuple, timeout: float = AI_TIMEOUT_SECONDS):
    """Run fn(*args) in a daemon thread with a timeout.

    Returns (result, None) on success or (None, exc) on timeout/error.
    Daemon threads don't block Python exit if abandoned.
    """
    result_queue: queue.Queue = queue.Queue()

    def _worker():
        try:
            result_queue.put(("ok", fn(*args)))
        except Exception as exc:
            result_queue.put(("err", exc))

    t = threading.Thread(target=_worker, daemon=True)
    t.start()
    try:
        status, value = result_queue.get(timeout=timeout)
        if status == "ok":
            return value, None
        return None, value
    except queue.Empty:
        return None, TimeoutError(f"LLM call timed out after {timeout}s")


_FENCED_JSON = re.compile(r"`{3}(?:json)?\s*(\{.*?\})\s*`{3}", re.DOTALL)


def extract_json_object(text: str) -> dict[str, Any]:
    """Pull the first JSON object out of a model reply.

    Tries a fenced json code block first, then the outermost ``{...}`` found
    by brace matching.

    Raises:
        ValueError: no JSON object could be decoded.
    """
    match = _FENCED_JSON.search(text)
    if match:
        candidate = match.group(1)
    else:
        start = text.find("{")
        if start < 0:
            raise ValueError("No JSON object found")
        depth = 0
        end = -1
        in_string = False
        escaped = False
        for i in range(start, len(text)):
            ch = text[i]
            if in_string:
                if escaped:
                    escaped = False
                elif ch == "\\":
                    escaped = True
                elif ch == '"':
                    in_string = False
            elif ch == '"':
                in_string = True
            elif ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    end = i + 1
                    break
        if end < 0:
            raise ValueError("Unbalanced JSON object")
        candidate = text[start:end]

    data = json.loads(candidate)
    if not isinstance(data, dict):
        raise ValueError("JSON payload is not an object")
    return data
