from fastapi import Request
from fastapi.responses import Response


async def serve_asset(request: Request) -> Response:
    # Returned as-is; the asset service owns status and headers.
    return await request.app.state.assets.fetch(request)
