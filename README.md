# toolchat

toolchat is a small HTTP chat server for a local Ollama instance. It offers
tools to the model. When the model calls one, the server runs it and sends the
output back as a `tool` message. This repeats until the model answers without
calling a tool.

The model is offered two tools:

- `websearch` searches DuckDuckGo's HTML results page. It takes a `query` and
  an optional `count`, which defaults to 5. Each hit comes back as
  `Title: ...`, `URL: ...`, `Content: ...` followed by `---`.
- `python_invoker` runs `python3 -c <script> <args...>`. It takes a `script`
  and an optional `args` list of strings, and returns
  `Exit Code: ...`, `Stdout: ...` and `Stderr: ...`.

## Installation

```
pip install .
```

You need an Ollama server reachable at `http://localhost:11434/api/chat`, and
`python3` on `PATH`.

## Running

```
toolchat
toolchat --host 0.0.0.0 --port 9000
```

By default the server listens on `127.0.0.1:8080`. When it starts, it reads
the system prompt from `system_prompt.txt` in the current working directory.
If that file cannot be read, it logs the error and uses
"You are a helpful assistant." instead. Every request adds
" Current date and time: <ISO 8601 local time>" to the prompt.

## Endpoints

### `POST /chat`

```json
{"message": "What happened in the news today?", "model": "llama3.1"}
```

Response:

```json
{"response": "..."}
```

- `message` and `model` must both be strings. Otherwise the server answers 400.
- If the model call fails, the server answers 500 with
  `{"response": "Error: ..."}`.
- If a tool fails, the server also answers 500 with
  `{"response": "Error: ..."}`. A script that exits with a non-zero code
  counts as a failed tool.

### `POST /search`

```json
{"query": "python asyncio", "count": 3}
```

- `query` must be a string.
- `count` is optional. If given, it must be a non-negative integer; if left
  out, it defaults to 5. Invalid input gets a 400.
- The response is a JSON list of `{"title", "content", "url"}` objects.
- If the search fails, the server answers 500 with the error text.

## Using the pieces directly

```python
import asyncio
from toolchat.websearch import WebSearchClient
from toolchat.python_invoker import PythonInvoker

results = asyncio.run(WebSearchClient().search("aiohttp", 3))
for result in results:
    print(result.title, result.url)

outcome = PythonInvoker().run_script("import sys; print(sys.argv[1:])", ["a", "b"])
print(outcome.exit_code, outcome.stdout)
```

### `toolchat.websearch`

- `WebSearchClient(engine, search_url)` runs searches.
- `WebSearchClient.fetch_page_content(url)` returns the text of a page's
  paragraphs, headings, articles and sections.
- `parse_duckduckgo_results(html, count)` and `extract_page_content(html)`
  do the same parsing on HTML you already have.
- Failures raise `NetworkError` or `SearchError`. Both are subclasses of
  `WebSearchError`.

### `toolchat.python_invoker`

- `PythonInvoker(interpreter)` runs scripts. The interpreter defaults to
  `python3`.
- `run_script` returns a `PythonScriptResult`.
- It raises `CommandError` if the interpreter cannot be started, and
  `ScriptError` on a non-zero exit.

### `toolchat.ollama`

- `OllamaClient(url)` sends non-streamed chat requests.
- It raises `OllamaApiError` for unsuccessful statuses, and
  `OllamaRequestError` for transport errors or malformed replies.

### `toolchat.query_handler`

`QueryHandler` runs the chat loop. You can pass it your own `OllamaClient`,
`WebSearchClient`, `PythonInvoker` or system prompt.

### `toolchat.server`

`create_app(query_handler, search_client)` returns the aiohttp application, so
you can serve it from your own setup.

## Limitations

- Replies are not streamed.
- The server keeps no conversation history between requests. Each `/chat`
  call starts with only the system prompt and the new message.
- Scripts run by `python_invoker` are not sandboxed and have no time limit.

## Development

```
pip install -e .[test]
pytest
```