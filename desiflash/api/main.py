import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from desiflash.core.config import LOG_LEVEL
from desiflash.providers.base import UpstreamFetchFailed
from desiflash.providers.runner import ProviderEngine
from desiflash.proxy.hls import CORS, handle_hls_proxy

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
log = logging.getLogger("desiflash.api")

app = FastAPI(title="DesiFlash | HLS Resolver")

MISSING_ID = "Missing required query parameter: id"


@app.exception_handler(UpstreamFetchFailed)
async def upstream_failed(request: Request, exc: UpstreamFetchFailed):
    log.warning(f"Upstream failure on {request.url.path}: {exc}")
    return PlainTextResponse("Upstream fetch failed", status_code=500, headers=CORS)


@app.get("/")
async def health():
    return {"status": "ok"}

# --- CORS PREFLIGHT ---
@app.options("/sources")
async def sources_preflight():
    return Response(status_code=204, headers={
        **CORS,
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
        "Access-Control-Max-Age": "86400",
    })


@app.options("/hls/{token}")
async def hls_preflight(token: str):
    return Response(status_code=200, headers={
        **CORS,
        "Access-Control-Allow-Methods": "GET, HEAD, OPTIONS",
        "Access-Control-Allow-Headers": "Range, Content-Type",
        "Access-Control-Max-Age": "86400",
    })

# --- RESOLVE ---
@app.get("/sources")
async def get_sources(id: str = None):
    if not id:
        return JSONResponse({"success": False, "error": MISSING_ID}, status_code=400, headers=CORS)

    engine = ProviderEngine()
    try:
        source = await engine.resolve(id)
    except Exception as e:
        log.warning(f"Resolution failed for {id}: {e}")
        message = str(e) or "Internal error"
        return JSONResponse({"success": False, "error": message}, status_code=500, headers=CORS)
    finally:
        await engine.close()

    return JSONResponse({"success": True, "url": id, "data": source.to_dict()}, headers=CORS)

# --- PROXY ---
@app.get("/hls/{token}")
async def hls_proxy(token: str, request: Request):
    return await handle_hls_proxy(token, request)
