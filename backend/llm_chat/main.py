import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from llm_chat.config import Settings, settings as default_settings
from llm_chat.routers import assets, chat
from llm_chat.services.assets import StaticAssetService
from llm_chat.services.chat_adapter import ChatAdapter
from llm_chat.services.generators import GeminiGenerator, InferenceClient, WorkersAIGenerator
from llm_chat.services.inference import WorkersAIClient

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    *,
    http_client: Optional[httpx.AsyncClient] = None,
    inference_client: Optional[InferenceClient] = None,
    assets_service: Optional[StaticAssetService] = None,
) -> FastAPI:
    """
    Build the app with its collaborators wired in.
    Anything not passed in is built from settings. Without an http_client,
    one is opened when the app starts and closed on shutdown; one passed in
    is left to the caller.
    """
    settings = settings or default_settings
    gemini = GeminiGenerator(http_client, settings.gemini_api_key, settings.gemini_endpoint)
    # collaborators that get the app-owned client at startup
    needs_client: list = [gemini]
    if inference_client is None:
        inference_client = WorkersAIClient(
            http_client,
            settings.cloudflare_account_id,
            settings.cloudflare_api_token,
        )
        needs_client.append(inference_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("%s starting (%s)", settings.app_name, settings.environment)
        if http_client is not None:
            yield
            return
        async with httpx.AsyncClient(
            timeout=httpx.Timeout(
                settings.upstream_read_timeout,
                connect=settings.upstream_connect_timeout,
            )
        ) as owned_client:
            for collaborator in needs_client:
                collaborator.http_client = owned_client
            yield

    app = FastAPI(
        title=settings.app_name,
        version="0.1.0",
        description="Streams chat replies from Workers AI or Gemini",
        lifespan=lifespan,
        # every non-/api/ path belongs to the static assets
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.chat_adapter = ChatAdapter(
        generators={
            "workers-ai": WorkersAIGenerator(inference_client, settings.workers_ai_model),
            "gemini": gemini,
        },
        system_prompt=settings.system_prompt,
        log_dir=settings.log_dir,
    )
    app.state.assets = assets_service or StaticAssetService(settings.public_dir)

    # Order matters. POST /api/chat first; the catch-alls are added without
    # a method list so every method matches and the asset route comes last.
    app.include_router(chat.router)
    app.add_route("/api/chat", chat.chat_method_not_allowed, include_in_schema=False)
    app.add_route("/api/{api_path:path}", chat.api_not_found, include_in_schema=False)
    app.add_route("/{asset_path:path}", assets.serve_asset, include_in_schema=False)

    return app


app = create_app()


def run():
    uvicorn.run(
        "llm_chat.main:app",
        host="0.0.0.0",
        port=8000,
        log_level="info",
    )


if __name__ == "__main__":
    run()
