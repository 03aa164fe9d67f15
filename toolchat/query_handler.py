"""Chat request handling: a conversation loop with the model and its tools."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from toolchat.ollama import (
    ChatMessage,
    ChatResponse,
    OllamaClient,
    OllamaError,
    Tool,
    ToolFunction,
)
from toolchat.python_invoker import PythonInvoker, PythonInvokerError
from toolchat.websearch import WebSearchClient, WebSearchError

log = logging.getLogger(__name__)

SYSTEM_PROMPT_PATH = "system_prompt.txt"
DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."
DEFAULT_SEARCH_COUNT = 5


@dataclass
class ChatRequest:
    """A chat request from an API client."""

    message: str
    model: str

    @classmethod
    def from_dict(cls, data: Any) -> ChatRequest:
        """Build a request from decoded JSON; raise ValueError if it is malformed."""
        if not isinstance(data, dict):
            raise ValueError("chat request must be a JSON object")
        fields = {}
        for name in ("message", "model"):
            value = data.get(name)
            if not isinstance(value, str):
                raise ValueError(f"field '{name}' must be a string")
            fields[name] = value
        return cls(**fields)


@dataclass
class ChatApiResponse:
    """The reply sent back to the API client, with its HTTP status."""

    response: str
    status: int = 200

    def to_dict(self) -> dict[str, str]:
        return {"response": self.response}


class ToolExecutionError(Exception):
    """A tool requested by the model failed."""


def load_system_prompt(path: str | Path = SYSTEM_PROMPT_PATH) -> str:
    """Read the system prompt from a file, falling back to a default prompt."""
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        log.error("Failed to read %s: %s. Using default prompt.", path, exc)
        return DEFAULT_SYSTEM_PROMPT


def create_websearch_tool() -> Tool:
    """The tool that lets the model search the web for recent events and news."""
    return Tool(
        function=ToolFunction(
            name="websearch",
            description="Get search results from web for latest events, news.",
            parameters={
                "type": "object",
                "properties": {
                    "query": {
                        "type": "string",
                        "description": "The search query to do web search on.",
                    },
                    "count": {
                        "type": "number",
                        "description": "Optional field to mention how many web search results are needed",
                    },
                },
                "required": ["query"],
            },
        )
    )


def create_python_invoker_tool() -> Tool:
    """The tool that lets the model run a Python script."""
    return Tool(
        function=ToolFunction(
            name="python_invoker",
            description="Executes a python script provided as a string and returns its output.",
            parameters={
                "type": "object",
                "properties": {
                    "script": {
                        "type": "string",
                        "description": "The Python script to execute.",
                    },
                    "args": {
                        "type": "array",
                        "description": "Optional arguments to pass to the script.",
                        "items": {"type": "string"},
                    },
                },
                "required": ["script"],
            },
        )
    )


def _search_count(value: Any) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 0:
        return value
    return DEFAULT_SEARCH_COUNT


class QueryHandler:
    """Runs a conversation with the model, executing the tools it calls."""

    def __init__(
        self,
        ollama_client: OllamaClient | None = None,
        search_client: WebSearchClient | None = None,
        python_invoker: PythonInvoker | None = None,
        system_prompt: str | None = None,
    ) -> None:
        self.ollama_client = ollama_client if ollama_client is not None else OllamaClient()
        self.search_client = search_client if search_client is not None else WebSearchClient()
        self.python_invoker = python_invoker if python_invoker is not None else PythonInvoker()
        self.system_prompt = system_prompt if system_prompt is not None else load_system_prompt()

    async def _run_websearch(self, name: str, args: dict[str, Any]) -> tuple[str, str] | None:
        query = args.get("query")
        if not isinstance(query, str):
            return None
        count = _search_count(args.get("count"))
        try:
            results = await self.search_client.search(query, count)
        except WebSearchError as exc:
            log.error("Web search error: %s", exc)
            raise ToolExecutionError(f"Web search failed: {exc}") from exc
        text = "\n".join(
            f"Title: {r.title}\nURL: {r.url}\nContent: {r.content}\n---" for r in results
        )
        return name, text

    async def _run_python(self, name: str, args: dict[str, Any]) -> tuple[str, str] | None:
        script = args.get("script")
        if not isinstance(script, str):
            return None
        raw_args = args.get("args")
        script_args = (
            [arg for arg in raw_args if isinstance(arg, str)] if isinstance(raw_args, list) else []
        )
        try:
            result = await asyncio.to_thread(self.python_invoker.run_script, script, script_args)
        except PythonInvokerError as exc:
            log.error("Python invoker error: %s", exc)
            raise ToolExecutionError(f"Python script execution failed: {exc}") from exc
        output = f"Exit Code: {result.exit_code}\nStdout: {result.stdout}\nStderr: {result.stderr}"
        return name, output

    async def process_tool_calls(self, chat_response: ChatResponse) -> tuple[str, str] | None:
        """Run the first recognised tool call; return (tool name, output) or None."""
        for call in chat_response.message.tool_calls or ():
            name = call.function.name
            args = call.function.arguments
            if not isinstance(args, dict):
                continue
            if name == "websearch":
                outcome = await self._run_websearch(name, args)
            elif name == "python_invoker":
                outcome = await self._run_python(name, args)
            else:
                continue
            if outcome is not None:
                return outcome
        return None

    async def handle_chat(self, request: ChatRequest) -> ChatApiResponse:
        """Answer a chat request, looping while the model asks for tools."""
        log.info("Processing chat request for model: %s", request.model)
        now = datetime.now().astimezone().isoformat()
        messages = [
            ChatMessage(
                role="system",
                content=f"{self.system_prompt} Current date and time: {now}",
            ),
            ChatMessage(role="user", content=request.message),
        ]
        tools = [create_websearch_tool(), create_python_invoker_tool()]

        while True:
            try:
                chat_response = await self.ollama_client.chat(list(messages), request.model, tools)
            except OllamaError as exc:
                log.error("Ollama chat error: %s", exc)
                return ChatApiResponse(response=f"Error: {exc}", status=500)

            log.info("Tool calls: %r", chat_response.message.tool_calls)
            try:
                outcome = await self.process_tool_calls(chat_response)
            except ToolExecutionError as exc:
                log.error("Tool processing error: %s", exc)
                return ChatApiResponse(response=f"Error: {exc}", status=500)

            if outcome is None:
                log.info("Final response received from the model.")
                return ChatApiResponse(response=chat_response.message.content)

            _, tool_output = outcome
            messages.append(
                ChatMessage(
                    role="assistant",
                    content=chat_response.message.content,
                    tool_calls=chat_response.message.tool_calls,
                )
            )
            messages.append(ChatMessage(role="tool", content=tool_output))