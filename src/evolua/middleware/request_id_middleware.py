"""
Attach a request id to every request and response.
"""

import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request.state.request_id = request.headers.get(HEADER) or str(uuid.uuid4())
        response = await call_next(request)
        response.headers[HEADER] = request.state.request_id
        return response
