"""
Permem - Persistent memory for AI

Add memory to any LLM in one line. Extraction, deduplication and search run
on the Permem server; this package is the client.

Usage:
    import permem

    # Store a memory
    permem.memorize("User's name is Ashish", user_id="user-123")

    # Recall memories
    result = permem.recall("What is the user's name?", user_id="user-123")
    for m in result.memories:
        print(f"{m.summary} (similarity: {m.similarity})")

    # Auto mode - inject before the LLM call
    context = permem.inject("Hello!", user_id="user-123")

    # Auto mode - extract after the LLM response
    permem.extract(messages, user_id="user-123")

    # Custom configuration
    from permem import Permem
    mem = Permem(url="https://api.permem.io", api_key="your-api-key")

Environment Variables:
    PERMEM_URL: Server URL (default: http://localhost:3333)
    PERMEM_API_KEY: API key (optional)
"""

from permem.client import AsyncPermem, Permem, estimate_tokens
from permem.config import ResolvedConfig
from permem.default import configure, extract, get_client, health, inject, memorize, recall
from permem.exceptions import PermemError
from permem.models import (
    ChatMessage,
    ExtractResponse,
    InjectResponse,
    MemorizeResponse,
    Memory,
    RecallResponse,
)

__all__ = [
    "Permem",
    "AsyncPermem",
    "PermemError",
    "ResolvedConfig",
    "ChatMessage",
    "Memory",
    "MemorizeResponse",
    "RecallResponse",
    "InjectResponse",
    "ExtractResponse",
    "estimate_tokens",
    "configure",
    "get_client",
    "memorize",
    "recall",
    "inject",
    "extract",
    "health",
]
__version__ = "0.1.0"
