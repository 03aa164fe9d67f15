"""HTTP chat server that lets Ollama models call web search and Python script tools."""

__version__ = "0.1.0"