"""Permem client - typed wrapper around the Permem memory API."""

import logging
import math
from typing import Any, Dict, Optional, Sequence, Union

import httpx
from pydantic import ValidationError

from permem.config import ResolvedConfig, resolve_config
from permem.exceptions import PermemError
from permem.models import (
    ChatMessage,
    ExtractRequest,
    ExtractResponse,
    HealthResponse,
    InjectRequest,
    InjectResponse,
    MemorizeRequest,
    MemorizeResponse,
    RecallResponse,
    SearchMode,
)

logger = logging.getLogger(__name__)

MessageLike = Union[ChatMessage, Dict[str, Any]]


def estimate_tokens(messages: Sequence[MessageLike]) -> int:
    """
    Estimate the token count of a conversation.

    Contents are joined with a single space and every 4 characters count as
    one token, rounded up. Characters are counted as UTF-16 code units, so
    an emoji counts as two. This is not a tokenizer; the server's extraction
    threshold is tuned against this estimate.
    """
    text = " ".join(_to_message(m).content for m in messages)
    return math.ceil(_utf16_length(text) / 4)


def _utf16_length(text: str) -> int:
    return len(text.encode("utf-16-le")) // 2


def _to_message(message: MessageLike) -> ChatMessage:
    if isinstance(message, ChatMessage):
        return message
    return ChatMessage.model_validate(message)


def _require_user_id(user_id: Optional[str]) -> str:
    if not user_id:
        raise ValueError("user_id is required")
    return user_id


class _BaseClient:
    """Configuration and request shaping shared by the sync and async clients."""

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        max_context_length: Optional[int] = None,
        extract_threshold: Optional[float] = None,
    ):
        self._config = resolve_config(
            url=url,
            api_key=api_key,
            max_context_length=max_context_length,
            extract_threshold=extract_threshold,
        )

    @property
    def config(self) -> ResolvedConfig:
        """The resolved configuration of this client."""
        return self._config

    @property
    def url(self) -> str:
        return self._config.url

    def __repr__(self) -> str:
        return f"{type(self).__name__}(url={self._config.url!r})"

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._config.api_key:
            headers["x-api-key"] = self._config.api_key
        return headers

    def _url(self, path: str) -> str:
        return f"{self._config.url}{path}"

    def _memorize_body(
        self,
        content: str,
        user_id: str,
        conversation_id: Optional[str],
        async_: bool,
    ) -> Dict[str, Any]:
        return MemorizeRequest(
            content=content,
            user_id=_require_user_id(user_id),
            conversation_id=conversation_id,
            async_=async_ or False,
        ).to_wire()

    def _recall_params(
        self,
        query: str,
        user_id: str,
        limit: Optional[int],
        mode: Optional[SearchMode],
        conversation_id: Optional[str],
    ) -> Dict[str, Any]:
        params: Dict[str, Any] = {"q": query, "userId": _require_user_id(user_id)}
        if limit:
            params["limit"] = str(limit)
        if mode:
            params["mode"] = mode
        if conversation_id:
            params["conversationId"] = conversation_id
        return params

    def _inject_body(
        self,
        message: str,
        user_id: str,
        context_length: Optional[int],
        conversation_id: Optional[str],
    ) -> Dict[str, Any]:
        return InjectRequest(
            message=message,
            user_id=_require_user_id(user_id),
            conversation_id=conversation_id,
            context_length=context_length or 0,
            max_context_length=self._config.max_context_length,
        ).to_wire()

    def _extract_body(
        self,
        messages: Sequence[MessageLike],
        user_id: str,
        context_length: Optional[int],
        conversation_id: Optional[str],
        extract_threshold: Optional[float],
        async_: bool,
    ) -> Dict[str, Any]:
        chat = [_to_message(m) for m in messages]
        return ExtractRequest(
            messages=chat,
            user_id=_require_user_id(user_id),
            conversation_id=conversation_id,
            context_length=context_length or estimate_tokens(chat),
            max_context_length=self._config.max_context_length,
            extract_threshold=extract_threshold or self._config.extract_threshold,
            async_=async_ or False,
        ).to_wire()

    @staticmethod
    def _is_healthy(data: Any) -> bool:
        try:
            return HealthResponse.model_validate(data).status == "ok"
        except ValidationError:
            return False


class Permem(_BaseClient):
    """
    Client for the Permem memory API.

    Usage:
        from permem import Permem

        # Zero config - talks to http://localhost:3333
        mem = Permem()

        # Custom server
        mem = Permem(url="https://api.permem.io", api_key="xxx")

        # Store and recall
        mem.memorize("User's name is Ashish", user_id="user-123")
        result = mem.recall("What is the user's name?", user_id="user-123")

        # Auto mode: before and after the LLM call
        context = mem.inject("What's my name?", user_id="user-123")
        if context.should_inject:
            system_prompt += context.injection_text
        mem.extract(messages, user_id="user-123")
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        max_context_length: Optional[int] = None,
        extract_threshold: Optional[float] = None,
        http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the Permem client.

        Args:
            url: Base URL of the Permem server. Default http://localhost:3333.
            api_key: API key, sent as the x-api-key header when set.
            max_context_length: Model context window in tokens. Default 8000.
            extract_threshold: Extraction threshold (0-1). Default 0.7.
            http_client: Optional httpx.Client to send requests with. The
                client is not closed by close() when supplied by the caller.
        """
        super().__init__(
            url=url,
            api_key=api_key,
            max_context_length=max_context_length,
            extract_threshold=extract_threshold,
        )
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client()

    def close(self) -> None:
        """Release the underlying connection pool."""
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "Permem":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ============ Core Methods ============

    def memorize(
        self,
        content: str,
        *,
        user_id: str,
        conversation_id: Optional[str] = None,
        async_: bool = False,
    ) -> MemorizeResponse:
        """
        Store a memory.

        Args:
            content: The content to memorize.
            user_id: Owner of the memory (required).
            conversation_id: Optional conversation to associate the memory with.
            async_: Ask the server to process in the background. The call still
                waits for the HTTP response.

        Returns:
            MemorizeResponse. stored=False with no memories is a valid outcome,
            not an error.

        Raises:
            ValueError: If user_id is empty.
            PermemError: If the server answers with a non-2xx status.
        """
        body = self._memorize_body(content, user_id, conversation_id, async_)
        data = self._request("POST", "/v1/memories", body=body)
        return MemorizeResponse.from_wire(data)

    def recall(
        self,
        query: str,
        *,
        user_id: str,
        limit: Optional[int] = None,
        mode: Optional[SearchMode] = None,
        conversation_id: Optional[str] = None,
    ) -> RecallResponse:
        """
        Recall memories by semantic search.

        Args:
            query: Search query.
            user_id: Owner of the memories (required).
            limit: Maximum number of results.
            mode: "focused", "balanced" or "creative"; interpreted by the server.
            conversation_id: Restrict to one conversation.
        """
        params = self._recall_params(query, user_id, limit, mode, conversation_id)
        data = self._request("GET", "/v1/memories/search", params=params)
        return RecallResponse.model_validate(data)

    # ============ Auto Mode Methods ============

    def inject(
        self,
        message: str,
        *,
        user_id: str,
        context_length: Optional[int] = None,
        conversation_id: Optional[str] = None,
    ) -> InjectResponse:
        """
        Retrieve relevant memories before an LLM call.

        Args:
            message: The user's message.
            user_id: Owner of the memories (required).
            context_length: Tokens already used by the conversation. Default 0.
            conversation_id: Optional conversation identifier.

        Returns:
            InjectResponse; append injection_text to the prompt when
            should_inject is set.
        """
        body = self._inject_body(message, user_id, context_length, conversation_id)
        data = self._request("POST", "/v1/auto/inbound", body=body)
        return InjectResponse.model_validate(data)

    def extract(
        self,
        messages: Sequence[MessageLike],
        *,
        user_id: str,
        context_length: Optional[int] = None,
        conversation_id: Optional[str] = None,
        extract_threshold: Optional[float] = None,
        async_: bool = False,
    ) -> ExtractResponse:
        """
        Extract memories from a conversation after an LLM response.

        Args:
            messages: ChatMessage objects or {"role", "content"} dicts.
            user_id: Owner of the memories (required).
            context_length: Tokens used by the conversation. Estimated from
                the messages when omitted.
            conversation_id: Optional conversation identifier.
            extract_threshold: Overrides the client's extract threshold.
            async_: Ask the server to extract in the background.
        """
        body = self._extract_body(
            messages, user_id, context_length, conversation_id, extract_threshold, async_
        )
        data = self._request("POST", "/v1/auto/outbound", body=body)
        return ExtractResponse.model_validate(data)

    # ============ Utility Methods ============

    def health(self) -> bool:
        """Check if the server is healthy. Never raises."""
        try:
            data = self._request("GET", "/health")
        except Exception as exc:
            logger.debug("Health check against %s failed: %s", self.url, exc)
            return False
        return self._is_healthy(data)

    def _request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = self._url(path)
        logger.debug("%s %s", method, url)
        response = self._http.request(
            method, url, headers=self._headers(), params=params, json=body
        )
        if not response.is_success:
            raise PermemError.from_response(response)
        return response.json()


class AsyncPermem(_BaseClient):
    """
    Asyncio client for the Permem memory API.

    Same contract as Permem, with coroutine methods:

        async with AsyncPermem(url="https://api.permem.io") as mem:
            result = await mem.recall("favorite color", user_id="user-123")
    """

    def __init__(
        self,
        url: Optional[str] = None,
        api_key: Optional[str] = None,
        max_context_length: Optional[int] = None,
        extract_threshold: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(
            url=url,
            api_key=api_key,
            max_context_length=max_context_length,
            extract_threshold=extract_threshold,
        )
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient()

    async def close(self) -> None:
        """Release the underlying connection pool."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "AsyncPermem":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def memorize(
        self,
        content: str,
        *,
        user_id: str,
        conversation_id: Optional[str] = None,
        async_: bool = False,
    ) -> MemorizeResponse:
        """Store a memory. See Permem.memorize."""
        body = self._memorize_body(content, user_id, conversation_id, async_)
        data = await self._request("POST", "/v1/memories", body=body)
        return MemorizeResponse.from_wire(data)

    async def recall(
        self,
        query: str,
        *,
        user_id: str,
        limit: Optional[int] = None,
        mode: Optional[SearchMode] = None,
        conversation_id: Optional[str] = None,
    ) -> RecallResponse:
        """Recall memories by semantic search. See Permem.recall."""
        params = self._recall_params(query, user_id, limit, mode, conversation_id)
        data = await self._request("GET", "/v1/memories/search", params=params)
        return RecallResponse.model_validate(data)

    async def inject(
        self,
        message: str,
        *,
        user_id: str,
        context_length: Optional[int] = None,
        conversation_id: Optional[str] = None,
    ) -> InjectResponse:
        """Retrieve relevant memories before an LLM call. See Permem.inject."""
        body = self._inject_body(message, user_id, context_length, conversation_id)
        data = await self._request("POST", "/v1/auto/inbound", body=body)
        return InjectResponse.model_validate(data)

    async def extract(
        self,
        messages: Sequence[MessageLike],
        *,
        user_id: str,
        context_length: Optional[int] = None,
        conversation_id: Optional[str] = None,
        extract_threshold: Optional[float] = None,
        async_: bool = False,
    ) -> ExtractResponse:
        """Extract memories from a conversation. See Permem.extract."""
        body = self._extract_body(
            messages, user_id, context_length, conversation_id, extract_threshold, async_
        )
        data = await self._request("POST", "/v1/auto/outbound", body=body)
        return ExtractResponse.model_validate(data)

    async def health(self) -> bool:
        """Check if the server is healthy. Never raises."""
        try:
            data = await self._request("GET", "/health")
        except Exception as exc:
            logger.debug("Health check against %s failed: %s", self.url, exc)
            return False
        return self._is_healthy(data)

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = self._url(path)
        logger.debug("%s %s", method, url)
        response = await self._http.request(
            method, url, headers=self._headers(), params=params, json=body
        )
        if not response.is_success:
            raise PermemError.from_response(response)
        return response.json()
