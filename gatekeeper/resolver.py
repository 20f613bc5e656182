"""Client address resolution"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from fastapi import Request

from gatekeeper.utils.network_utils import truncate_user_agent

logger = logging.getLogger(__name__)

DEFAULT_ADDRESS_HEADERS = ("client-ip", "x-forwarded-for")


@dataclass
class RequestContext:
    """Everything the gate reads from an inbound request.

    Header names are stored lower-cased.
    """
    headers: Dict[str, str] = field(default_factory=dict)
    remote_addr: Optional[str] = None
    method: Optional[str] = None
    path: Optional[str] = None
    query: Dict[str, Any] = field(default_factory=dict)
    body: Optional[Any] = None

    def __post_init__(self):
        self.headers = {k.lower(): v for k, v in (self.headers or {}).items()}

    @property
    def referer(self) -> Optional[str]:
        return self.headers.get("referer")

    @property
    def user_agent(self) -> Optional[str]:
        return truncate_user_agent(self.headers.get("user-agent"))

    def request_data(self) -> Dict[str, Any]:
        """Raw request payload stored with a visit"""
        return {
            "headers": dict(self.headers),
            "post": self.body,
            "get": dict(self.query),
        }

    @classmethod
    async def from_request(cls, request: Request) -> "RequestContext":
        """Build a context from a FastAPI request.

        The body is read as JSON or form data depending on the content type.
        Unreadable bodies are kept as None rather than failing the check.
        """
        body = None
        content_type = request.headers.get("content-type", "")
        try:
            if "application/json" in content_type:
                raw = await request.body()
                body = json.loads(raw) if raw else None
            elif "form" in content_type:
                form = await request.form()
                body = {key: value for key, value in form.items() if isinstance(value, str)}
        except Exception as e:
            logger.debug(f"Could not read request body: {e}")

        return cls(
            headers=dict(request.headers),
            remote_addr=request.client.host if request.client else None,
            method=request.method,
            path=request.url.path + (f"?{request.url.query}" if request.url.query else ""),
            query=dict(request.query_params),
            body=body,
        )


class AddressResolver:
    """Determine the caller's address from proxy headers or the connection.

    Sources are checked in order; the first one holding a non-blank address
    wins. No syntax validation is done, malformed values are returned as-is.
    """

    def __init__(self, context: RequestContext, header_sources: Iterable[str] = DEFAULT_ADDRESS_HEADERS):
        self.context = context
        self.header_sources = [h.lower() for h in header_sources]

    def _matched_source(self) -> List[str]:
        """Tokens of the first source that holds at least one usable address"""
        candidates = [self.context.headers.get(header) for header in self.header_sources]
        candidates.append(self.context.remote_addr)

        for value in candidates:
            if not value:
                continue
            tokens = [token.strip() for token in value.split(",")]
            tokens = [token for token in tokens if token]
            if tokens:
                return tokens

        return []

    def resolve_all(self) -> List[str]:
        """All addresses from the matched source, de-duplicated in order"""
        addresses = []
        for token in self._matched_source():
            if token not in addresses:
                addresses.append(token)
        return addresses

    def resolve(self) -> Optional[str]:
        """First address of the matched source, or None"""
        addresses = self.resolve_all()
        return addresses[0] if addresses else None
