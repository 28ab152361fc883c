from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response

router = APIRouter(
    prefix="/api",
    tags=["chat"],
)


@router.post("/chat")
async def chat(request: Request) -> Response:
    """
    Stream a reply from the selected backend.
    The body is read raw so malformed JSON reaches the adapter's error
    handling instead of FastAPI's 422 validation.
    """
    body = await request.body()
    return await request.app.state.chat_adapter.handle(body)


# Plain starlette endpoints, registered without a method list so they
# match every method (see main.create_app).

async def chat_method_not_allowed(request: Request) -> Response:
    return PlainTextResponse("Method not allowed", status_code=405)


async def api_not_found(request: Request) -> Response:
    return PlainTextResponse("Not found", status_code=404)
