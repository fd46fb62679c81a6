from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

CanonicalPair = Tuple[str, str]


class HTTPMethod(Enum):
    """HTTP methods with string values."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"
    PATCH = "PATCH"

    @property
    def carries_body(self) -> bool:
        """POST/PUT/PATCH conventionally carry a request body."""
        return self in (HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.PATCH)


@dataclass(frozen=True)
class PreparedRequest:
    """Wire-ready request produced from a canonical invocation plus signature placement."""
    method: HTTPMethod
    path: str
    query: Tuple[CanonicalPair, ...] = ()
    headers: Tuple[CanonicalPair, ...] = ()
    body: Optional[str] = None
    content_type: Optional[str] = None

    def header_dict(self) -> Dict[str, str]:
        headers = dict(self.headers)
        if self.content_type and 'Content-Type' not in headers:
            headers['Content-Type'] = self.content_type
        return headers


@dataclass(frozen=True)
class HttpResponse:
    """Raw transport response handed to the response decoder."""
    status: int
    body: bytes
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300
