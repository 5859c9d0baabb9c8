"""
Rate limiter shared by all routers.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request


def caller_or_remote_address(request: Request) -> str:
    """Key limits on the verified caller when there is one, else on the client address."""
    caller_id = getattr(request.state, "caller_id", None)
    if caller_id:
        return f"caller:{caller_id}"
    return get_remote_address(request)


limiter = Limiter(key_func=caller_or_remote_address)
