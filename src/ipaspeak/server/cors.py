"""CORS handling for browser-extension clients."""

from collections.abc import Iterable

from fastapi import FastAPI, Request, Response

ALLOW_METHODS = "GET, POST, OPTIONS"
ALLOW_HEADERS = "Content-Type, Charset, Accept"


def allowed_origin(origin: str | None, prefixes: Iterable[str]) -> str:
    """Echo extension origins back; everyone else gets the wildcard."""
    if origin and origin.startswith(tuple(prefixes)):
        return origin
    return "*"


def cors_headers(origin: str | None, prefixes: Iterable[str]) -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": allowed_origin(origin, prefixes),
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Vary": "Origin",
    }


def install_cors(app: FastAPI, prefixes: Iterable[str]) -> None:
    """Add CORS headers to every response and answer preflights with 204.

    Installed as the outermost middleware so error responses carry the
    headers too.
    """
    prefixes = tuple(prefixes)

    @app.middleware("http")
    async def apply_cors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)
        response.headers.update(cors_headers(request.headers.get("origin"), prefixes))
        return response
