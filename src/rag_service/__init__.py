"""RAG Service: query enhancement, web search, browser-backed scraping and
LLM answer generation behind a small FastAPI application."""

__version__ = "0.1.0"
