from typing import NamedTuple, Optional


class HttpResponse(NamedTuple):
    """Response from HTTP fetch operation."""
    status_code: int
    text: str
    content_type: Optional[str] = None
    url: Optional[str] = None
    """Final URL after redirects; relative links resolve against it."""
