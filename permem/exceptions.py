"""Errors raised by the Permem clients."""

from typing import Optional

import httpx


class PermemError(Exception):
    """The server answered with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    def __repr__(self) -> str:
        return f"PermemError({self.message!r}, status_code={self.status_code!r})"

    @classmethod
    def from_response(cls, response: httpx.Response) -> "PermemError":
        """
        Classify a failed response.

        The message comes from the body's "error" field when the body is JSON
        and carries one, otherwise it is "HTTP <status>".
        """
        message = None
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            message = str(body["error"])
        return cls(message or f"HTTP {response.status_code}", response.status_code)
