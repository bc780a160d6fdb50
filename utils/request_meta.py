"""
Caller metadata for audit log entries.
"""

from fastapi import Request

from models.activity_log import RequestMeta


def client_ip(request: Request) -> str:
    """
    Best-effort client IP.

    Prefers the first X-Forwarded-For hop (set by the hosting proxy),
    then X-Real-IP, then the socket peer.
    """
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    if request.client and request.client.host:
        return request.client.host

    return "unknown"


def request_meta(request: Request) -> RequestMeta:
    """IP, user agent and query parameters of the current request."""
    return RequestMeta(
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent"),
        request_params=dict(request.query_params)
    )
