"""Client for the Ollama chat API, with the message and tool types it exchanges."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any

import aiohttp

log = logging.getLogger(__name__)

OLLAMA_CHAT_API_URL = "http://localhost:11434/api/chat"


@dataclass
class FunctionCall:
    """A function the model asks to have called, with its JSON arguments."""

    name: str
    arguments: Any

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "arguments": self.arguments}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FunctionCall:
        return cls(name=data["name"], arguments=data["arguments"])


@dataclass
class ToolCall:
    """One tool call made by the model."""

    function: FunctionCall

    def to_dict(self) -> dict[str, Any]:
        return {"function": self.function.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ToolCall:
        return cls(function=FunctionCall.from_dict(data["function"]))


@dataclass
class ChatMessage:
    """A message in a chat conversation."""

    role: str
    content: str
    tool_calls: list[ToolCall] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls is not None:
            data["tool_calls"] = [call.to_dict() for call in self.tool_calls]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        raw_calls = data.get("tool_calls")
        tool_calls = None
        if raw_calls is not None:
            tool_calls = [ToolCall.from_dict(call) for call in raw_calls]
        return cls(role=data["role"], content=data["content"], tool_calls=tool_calls)


@dataclass
class ToolFunction:
    """Description of a function the model may call."""

    name: str
    description: str
    parameters: Any


@dataclass
class Tool:
    """A tool offered to the model."""

    function: ToolFunction
    tool_type: str = field(default="function")

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.tool_type,
            "function": {
                "name": self.function.name,
                "description": self.function.description,
                "parameters": self.function.parameters,
            },
        }


@dataclass
class ChatResponse:
    """A non-streamed reply from the chat endpoint."""

    model: str
    message: ChatMessage
    done: bool

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatResponse:
        return cls(
            model=data["model"],
            message=ChatMessage.from_dict(data["message"]),
            done=data["done"],
        )


class OllamaError(Exception):
    """Base error for Ollama client failures."""


class OllamaRequestError(OllamaError):
    """The request could not be sent or its reply could not be decoded."""

    def __init__(self, reason: object) -> None:
        super().__init__(f"Failed to send request to Ollama: {reason}")
        self.reason = reason


class OllamaApiError(OllamaError):
    """The API answered with an unsuccessful status."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Ollama API error: {detail}")
        self.detail = detail


class OllamaClient:
    """Sends chat requests to an Ollama server."""

    def __init__(self, url: str = OLLAMA_CHAT_API_URL) -> None:
        self.url = url

    async def chat(
        self, messages: list[ChatMessage], model: str, tools: list[Tool]
    ) -> ChatResponse:
        """Send the conversation and return the model's reply."""
        log.info("Sending chat request to Ollama with model: %s", model)
        payload = {
            "model": model,
            "messages": [message.to_dict() for message in messages],
            "stream": False,
            "tools": [tool.to_dict() for tool in tools],
        }
        try:
            async with aiohttp.ClientSession() as session:
                async with session.post(self.url, json=payload) as response:
                    if not 200 <= response.status < 300:
                        try:
                            detail = await response.text()
                        except (aiohttp.ClientError, UnicodeDecodeError):
                            detail = "Unknown error"
                        log.error("Ollama API error: %s", detail)
                        raise OllamaApiError(detail)
                    body = await response.read()
        except aiohttp.ClientError as exc:
            raise OllamaRequestError(exc) from exc

        try:
            chat_response = ChatResponse.from_dict(json.loads(body))
        except (ValueError, KeyError, TypeError) as exc:
            raise OllamaRequestError(f"invalid response body: {exc!r}") from exc

        log.info("Received response from Ollama chat")
        return chat_response