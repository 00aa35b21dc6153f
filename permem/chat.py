"""Terminal chat with Permem memory: inject before each LLM call, extract after.

Usage:
    permem-chat
    permem-chat --user-id alice --model gpt-4o-mini

Environment Variables:
    OPENAI_API_KEY: API key for the chat model
    OPENAI_BASE_URL: Optional OpenAI-compatible endpoint (e.g. OpenRouter)
    PERMEM_URL / PERMEM_API_KEY: Permem server
    PERMEM_USER_ID: Memory owner (default: cli-chat-user)
"""

import argparse
import logging
import os
import time
import uuid
from typing import Any, Dict, List, Optional

import httpx
from openai import OpenAI

from permem.client import Permem, estimate_tokens
from permem.config import get_settings
from permem.exceptions import PermemError
from permem.models import ChatMessage, ExtractResponse

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant with long-term memory."

HISTORY_LIMIT = 10


def new_conversation_id() -> str:
    return f"conv-{int(time.time() * 1000)}-{uuid.uuid4().hex[:6]}"


class ChatSession:
    """A conversation whose turns are enriched with and mined for memories."""

    def __init__(
        self,
        memory: Permem,
        llm: OpenAI,
        user_id: str,
        model: str = "gpt-4o-mini",
        extract_message_threshold: int = 10,
    ):
        """
        Initialize a chat session.

        Args:
            memory: Permem client used for inject/extract.
            llm: OpenAI client used for completions.
            user_id: Owner of the memories.
            model: Chat completion model.
            extract_message_threshold: New messages needed before extracting.
        """
        self.memory = memory
        self.llm = llm
        self.user_id = user_id
        self.model = model
        self.extract_message_threshold = extract_message_threshold
        self.messages: List[ChatMessage] = []
        self.conversation_id = new_conversation_id()
        self.last_extraction_count = 0
        self.last_extraction: Optional[ExtractResponse] = None

    def context_length(self) -> int:
        """Tokens used by the conversation so far, estimated per message."""
        return sum(estimate_tokens([m]) for m in self.messages)

    def clear(self) -> None:
        """Start a new conversation."""
        self.messages = []
        self.conversation_id = new_conversation_id()
        self.last_extraction_count = 0

    def should_extract(self) -> bool:
        return len(self.messages) - self.last_extraction_count >= self.extract_message_threshold

    def build_system_prompt(self, user_message: str) -> str:
        """Build the system prompt, injecting memories when the server says so."""
        prompt = SYSTEM_PROMPT
        try:
            context = self.memory.inject(
                user_message,
                user_id=self.user_id,
                context_length=self.context_length(),
                conversation_id=self.conversation_id,
            )
        except (PermemError, httpx.HTTPError) as e:
            logger.warning("Memory injection failed: %s", e)
            return prompt

        if context.should_inject and context.injection_text:
            prompt += (
                f"\n\nRelevant memories about this user:\n{context.injection_text}"
                "\n\nUse these to personalize your responses."
            )
        return prompt

    def send(self, user_message: str) -> str:
        """
        Send a user message and return the assistant reply.

        Raises:
            ValueError: If the message is empty.
        """
        if not user_message or not user_message.strip():
            raise ValueError("Message cannot be empty")

        system_prompt = self.build_system_prompt(user_message)
        self.messages.append(ChatMessage(role="user", content=user_message))

        history: List[Dict[str, Any]] = [{"role": "system", "content": system_prompt}]
        history.extend(m.to_wire() for m in self.messages)
        response = self.llm.chat.completions.create(model=self.model, messages=history)
        reply = response.choices[0].message.content or ""

        self.messages.append(ChatMessage(role="assistant", content=reply))
        self.last_extraction = self.extract_memories()
        return reply

    def extract_memories(self, force: bool = False) -> Optional[ExtractResponse]:
        """
        Extract memories from the conversation.

        Runs once enough new messages have accumulated, or always when forced.
        After a productive extraction the history is trimmed to the last
        HISTORY_LIMIT messages.

        Returns:
            The ExtractResponse, or None when extraction was skipped or failed.
        """
        if not self.messages:
            return None
        if not force and (
            len(self.messages) <= self.last_extraction_count or not self.should_extract()
        ):
            return None

        try:
            result = self.memory.extract(
                self.messages,
                user_id=self.user_id,
                conversation_id=self.conversation_id,
            )
        except (PermemError, httpx.HTTPError) as e:
            logger.warning("Memory extraction failed: %s", e)
            return None

        if result.extracted or result.skipped_duplicates:
            self.last_extraction_count = len(self.messages)
            if len(self.messages) > HISTORY_LIMIT:
                self.messages = self.messages[-HISTORY_LIMIT:]
                self.last_extraction_count = len(self.messages)
        return result


def print_extraction(result: Optional[ExtractResponse]) -> None:
    if result is None:
        return
    if result.extracted:
        print(f"\n[Permem] Extracted {len(result.extracted)} memories:")
        for memory in result.extracted:
            print(f"  + {memory.summary}")
    if result.skipped_duplicates:
        print(f"[Permem] Skipped {len(result.skipped_duplicates)} duplicates")


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        prog="permem-chat",
        description="Chat with an LLM that remembers you, backed by Permem.",
    )
    parser.add_argument("--user-id", default=settings.user_id, help="Memory owner")
    parser.add_argument("--model", default=settings.chat_model, help="Chat completion model")
    parser.add_argument(
        "--extract-every",
        type=int,
        default=settings.extract_message_threshold,
        help="Extract memories after this many new messages",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Run an interactive chat loop in the terminal."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    settings = get_settings()
    memory = Permem(**settings.client_config().model_dump())
    llm = OpenAI(
        api_key=os.environ.get("OPENAI_API_KEY"),
        base_url=os.environ.get("OPENAI_BASE_URL") or None,
    )
    session = ChatSession(
        memory,
        llm,
        user_id=args.user_id,
        model=args.model,
        extract_message_threshold=args.extract_every,
    )

    print("=" * 32)
    print("  Permem CLI Chat")
    print("=" * 32)
    print(f"User: {session.user_id}")
    print(f"Server: {memory.url}")
    print('Commands: "exit", "clear"\n')

    try:
        while True:
            try:
                user_input = input("You: ").strip()
            except (KeyboardInterrupt, EOFError):
                print()
                break

            if not user_input:
                continue
            if user_input.lower() in ("exit", "quit"):
                break
            if user_input.lower() == "clear":
                session.clear()
                print("Conversation cleared.\n")
                continue

            try:
                reply = session.send(user_input)
            except Exception as e:
                print(f"Error: {e}")
                continue

            print(f"\nAssistant: {reply}\n")
            print_extraction(session.last_extraction)

        print("Saving memories...")
        print_extraction(session.extract_memories(force=True))
        print("Goodbye!")
    finally:
        memory.close()


if __name__ == "__main__":
    main()
