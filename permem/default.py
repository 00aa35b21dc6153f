"""
Process-wide default client and module-level convenience functions.

The default client is created lazily from PERMEM_* environment variables on
first use. configure() replaces it wholesale; there is no lock, so a call
racing with configure() may still go to the previous client (last write
wins).
"""

import logging
from typing import Optional, Sequence

from permem.client import MessageLike, Permem
from permem.config import get_settings
from permem.models import (
    ExtractResponse,
    InjectResponse,
    MemorizeResponse,
    RecallResponse,
    SearchMode,
)

logger = logging.getLogger(__name__)

_client: Optional[Permem] = None


def get_client() -> Permem:
    """Get or create the default client."""
    global _client
    if _client is None:
        config = get_settings().client_config()
        _client = Permem(**config.model_dump())
        logger.debug("Created default Permem client for %s", config.url)
    return _client


def configure(
    url: Optional[str] = None,
    api_key: Optional[str] = None,
    max_context_length: Optional[int] = None,
    extract_threshold: Optional[float] = None,
) -> Permem:
    """
    Replace the default client.

    Usage:
        import permem

        permem.configure(url="https://api.permem.io", api_key="xxx")
        permem.memorize("User prefers dark mode", user_id="user-123")

    The previous client is not closed, since other callers may still hold it.
    """
    global _client
    _client = Permem(
        url=url,
        api_key=api_key,
        max_context_length=max_context_length,
        extract_threshold=extract_threshold,
    )
    return _client


def memorize(
    content: str,
    *,
    user_id: str,
    conversation_id: Optional[str] = None,
    async_: bool = False,
) -> MemorizeResponse:
    """Store a memory using the default client."""
    return get_client().memorize(
        content, user_id=user_id, conversation_id=conversation_id, async_=async_
    )


def recall(
    query: str,
    *,
    user_id: str,
    limit: Optional[int] = None,
    mode: Optional[SearchMode] = None,
    conversation_id: Optional[str] = None,
) -> RecallResponse:
    """Recall memories using the default client."""
    return get_client().recall(
        query, user_id=user_id, limit=limit, mode=mode, conversation_id=conversation_id
    )


def inject(
    message: str,
    *,
    user_id: str,
    context_length: Optional[int] = None,
    conversation_id: Optional[str] = None,
) -> InjectResponse:
    """Retrieve memories to inject before an LLM call using the default client."""
    return get_client().inject(
        message,
        user_id=user_id,
        context_length=context_length,
        conversation_id=conversation_id,
    )


def extract(
    messages: Sequence[MessageLike],
    *,
    user_id: str,
    context_length: Optional[int] = None,
    conversation_id: Optional[str] = None,
    extract_threshold: Optional[float] = None,
    async_: bool = False,
) -> ExtractResponse:
    """Extract memories from a conversation using the default client."""
    return get_client().extract(
        messages,
        user_id=user_id,
        context_length=context_length,
        conversation_id=conversation_id,
        extract_threshold=extract_threshold,
        async_=async_,
    )


def health() -> bool:
    """Check if the default client's server is healthy."""
    return get_client().health()
