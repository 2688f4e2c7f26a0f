"""FastAPI application serving IPA pronunciations as audio.

Routes:
    GET  /        plain-text banner
    POST /        JSON {"ipa": ..., "language": ...} -> audio bytes
    POST /speak   same as POST /
    GET  /speak   ?ipa=...&language=... -> audio bytes
    GET  /status  provider and cache statistics

Failures are returned as {"success": false, "message": ..., "data": {"code": ...}}.
"""

import logging
from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel

from .. import __version__
from ..cache.memory import AudioCache
from ..config import IpaspeakConfig
from ..providers import ProviderRegistry
from ..providers.base import TTSProvider
from ..tts.client import SynthesisClient
from ..tts.errors import RateLimitedError, TTSError
from ..tts.pipeline import SpeechPipeline
from .cors import install_cors
from .ratelimit import RateLimiter

logger = logging.getLogger(__name__)

BANNER = (
    "This is an ipaspeak server, turning IPA into speech. "
    "You probably meant to do a POST request"
)


class SpeakRequest(BaseModel):
    ipa: str
    language: str | None = None


def error_response(
    status_code: int,
    message: str,
    data: dict[str, Any],
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "data": data},
        headers=headers,
    )


def create_app(
    config: IpaspeakConfig | None = None,
    provider: TTSProvider | None = None,
) -> FastAPI:
    """Build the HTTP application.

    Args:
        config: Process configuration (defaults when omitted)
        provider: Provider instance to use instead of the configured one

    Returns:
        FastAPI application with the pipeline, cache and limiter on ``app.state``

    Raises:
        KeyError: If the configured provider is not registered
        FatalProviderError: If the provider cannot be constructed (e.g. missing API key)
    """
    config = config or IpaspeakConfig()
    if provider is None:
        provider = ProviderRegistry.create(config.provider.name, config.provider)

    client = SynthesisClient.from_config(provider, config.provider)
    cache = AudioCache.from_config(config.cache)
    pipeline = SpeechPipeline.from_config(config, client, cache)
    limiter = RateLimiter(config.http.rate_limit_per_hour)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Serving IPA speech with {provider.name} "
            f"({provider.dialect} markup, {provider.content_type})"
        )
        yield
        await cache.aclose()
        logger.info("Shut down, in-flight syntheses cancelled")

    app = FastAPI(title="ipaspeak", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.provider = provider
    app.state.cache = cache
    app.state.pipeline = pipeline
    app.state.rate_limiter = limiter

    @app.exception_handler(TTSError)
    async def handle_tts_error(request: Request, exc: TTSError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.warning(f"{request.method} {request.url.path} failed: [{exc.code}] {exc}")
        else:
            logger.debug(f"{request.method} {request.url.path} rejected: [{exc.code}] {exc}")
        return error_response(
            exc.http_status, exc.message, exc.details(), headers=_rate_limit_headers(request)
        )

    @app.exception_handler(RequestValidationError)
    async def handle_invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
            for error in exc.errors()
        ]
        return error_response(
            400,
            "Request must provide a string 'ipa' field",
            {"code": "INVALID_REQUEST", "errors": errors},
        )

    @app.middleware("http")
    async def catch_unexpected(request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            return error_response(500, "Internal server error", {"code": "INTERNAL_ERROR"})

    install_cors(app, config.http.allowed_origin_prefixes)

    async def speak(request: Request, ipa: str, language: str | None) -> Response:
        if limiter.enabled:
            client_id = request.client.host if request.client else "unknown"
            decision = limiter.hit(client_id)
            request.state.rate_limit = decision
            if not decision.allowed:
                raise RateLimitedError(decision.limit, decision.retry_after)

        result = await pipeline.process(ipa, language)
        headers = {"X-Cache": "HIT" if result.cached else "MISS"}
        headers.update(_rate_limit_headers(request) or {})
        return Response(
            content=result.clip.audio,
            media_type=result.clip.content_type,
            headers=headers,
        )

    @app.get("/", response_class=PlainTextResponse)
    async def banner() -> str:
        return BANNER

    @app.post("/")
    @app.post("/speak")
    async def speak_json(body: SpeakRequest, request: Request) -> Response:
        return await speak(request, body.ipa, body.language)

    @app.get("/speak")
    async def speak_query(request: Request, ipa: str, language: str | None = None) -> Response:
        return await speak(request, ipa, language)

    @app.get("/status")
    async def status() -> dict[str, Any]:
        return {
            "success": True,
            "message": "ok",
            "data": {
                "provider": provider.name,
                "dialect": provider.dialect,
                "content_type": provider.content_type,
                "rate_limit_per_hour": limiter.limit,
                "cache": asdict(cache.stats()),
            },
        }

    return app


def _rate_limit_headers(request: Request) -> dict[str, str] | None:
    decision = getattr(request.state, "rate_limit", None)
    return decision.headers() if decision is not None else None
