"""Pydantic models for the Permem wire contract."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


MEMORY_TYPES = (
    "core",
    "fact",
    "decision",
    "preference",
    "note",
    "event",
    "insight",
    "goal",
    "relationship",
    "emotion",
)

IMPORTANCE_LEVELS = ("trivial", "low", "medium", "high", "critical")

SearchMode = Literal["focused", "balanced", "creative"]
Role = Literal["user", "assistant", "system"]


class WireModel(BaseModel):
    """Base model with camelCase aliases that keeps unknown server fields."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )

    def to_wire(self) -> Dict[str, Any]:
        """Dump to the JSON body sent to the server, omitting unset values."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ============ Records ============


class Entities(WireModel):
    """Named entities attached to a memory."""

    people: List[str] = Field(default_factory=list)
    places: List[str] = Field(default_factory=list)
    organizations: List[str] = Field(default_factory=list)
    things: List[str] = Field(default_factory=list)


class Memory(WireModel):
    """A memory record owned by the Permem server."""

    id: str
    summary: str
    type: Optional[str] = None
    importance: Optional[str] = None
    importance_score: Optional[float] = None
    similarity: Optional[float] = None
    created_at: Optional[datetime] = None
    topics: Optional[List[str]] = None
    emotions: Optional[List[str]] = None
    entities: Optional[Entities] = None


class ChatMessage(WireModel):
    """A single chat turn passed to extract."""

    role: Role
    content: str


class StoredMemory(WireModel):
    """A memory created or touched by memorize."""

    id: str
    summary: str
    type: Optional[str] = None
    action: Optional[str] = None


class ExtractedMemory(WireModel):
    """A memory produced by extract."""

    id: str
    summary: str
    type: Optional[str] = None
    action: Optional[str] = None


# ============ Requests ============


class MemorizeRequest(WireModel):
    content: str
    user_id: str
    conversation_id: Optional[str] = None
    async_: bool = Field(default=False, alias="async")


class InjectRequest(WireModel):
    message: str
    user_id: str
    conversation_id: Optional[str] = None
    context_length: int = 0
    max_context_length: int


class ExtractRequest(WireModel):
    messages: List[ChatMessage]
    user_id: str
    conversation_id: Optional[str] = None
    context_length: int
    max_context_length: int
    extract_threshold: float
    async_: bool = Field(default=False, alias="async")


# ============ Responses ============


class MemorizeResponse(BaseModel):
    """Result of memorize, shaped from the raw store response."""

    stored: bool
    count: int = 0
    memories: List[StoredMemory] = Field(default_factory=list)
    duplicates: int = 0

    @classmethod
    def from_wire(cls, data: Dict[str, Any]) -> "MemorizeResponse":
        """Map the raw {stored, stored_count, duplicates, results} body."""
        results = data.get("results") or []
        memories = [
            StoredMemory.model_validate({**result["memory"], "action": result.get("action")})
            for result in results
            if result.get("memory")
        ]
        return cls(
            stored=bool(data.get("stored")),
            count=data.get("stored_count") or 0,
            memories=memories,
            duplicates=data.get("duplicates") or 0,
        )


class RecallResponse(WireModel):
    """Memories retrieved by semantic search, most relevant first."""

    memories: List[Memory] = Field(default_factory=list)


class InjectResponse(WireModel):
    """Pre-LLM context retrieval result. The server decides should_inject."""

    memories: List[Memory] = Field(default_factory=list)
    injection_text: str = ""
    should_inject: bool = False


class ExtractResponse(WireModel):
    """Post-LLM extraction result. The server decides should_extract."""

    should_extract: bool = False
    extracted: List[ExtractedMemory] = Field(default_factory=list)
    skipped_duplicates: List[str] = Field(default_factory=list)


class HealthResponse(WireModel):
    status: str


# ============ Dashboard ============


class User(WireModel):
    id: str
    name: str
    email: str


class Project(WireModel):
    id: str
    name: str
    api_key: str
    max_memories: int


class AuthResponse(WireModel):
    user: User
    project: Optional[Project] = None
    token: str


class Account(WireModel):
    """The signed-in user and their project."""

    user: User
    project: Optional[Project] = None


class ProjectStats(WireModel):
    memory_count: int
    max_memories: int


class ProjectMemory(WireModel):
    """A memory as listed on the dashboard, tagged with its owner."""

    id: str
    user_id: str
    summary: str
    type: Optional[str] = None
    importance: Optional[str] = None
    importance_score: Optional[float] = None
    created_at: Optional[datetime] = None
    topics: Optional[List[str]] = None


class GraphNode(WireModel):
    id: str
    label: str
    type: str
    importance: float
    user_id: str


class GraphEdge(WireModel):
    source: str
    target: str
    type: str
    strength: float


class GraphData(WireModel):
    nodes: List[GraphNode] = Field(default_factory=list)
    edges: List[GraphEdge] = Field(default_factory=list)
