"""
Middleware that tags every request with an id and echoes it back.
"""

from fastapi import Request

from ubika.logging import bind_context, create_request_id


class RequestIDMiddleware:
    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request = Request(scope, receive=receive)
        request_id = request.headers.get("X-Request-ID") or create_request_id()
        scope.setdefault("state", {})["request_id"] = request_id

        bind_context(request_id=request_id)

        async def send_wrapper(response):
            if response["type"] == "http.response.start":
                headers = response.setdefault("headers", [])
                headers.append((b"x-request-id", request_id.encode()))
            await send(response)

        await self.app(scope, receive, send_wrapper)
