import uuid
import time
import json
import logging
from datetime import datetime
from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from progressbar.core.config import settings
from progressbar.routers import blocks, health, my

def create_app() -> FastAPI:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    app = FastAPI(title="Progress Bar block", version="1.0.0")

    logger = logging.getLogger("progressbar")

    allow_origins = [o.strip() for o in str(settings.cors_allow_origins or "").split(",") if o.strip()]
    if "*" in allow_origins:
        raise RuntimeError("CORS_ALLOW_ORIGINS must not include '*' when allow_credentials=true")

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        t0 = time.perf_counter()
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = rid
        status_code: int | None = None
        try:
            response = await call_next(request)
            status_code = int(getattr(response, "status_code", 0) or 0)
        except Exception:
            status_code = 500
            raise
        finally:
            try:
                dur_ms = int((time.perf_counter() - t0) * 1000)
                path = getattr(getattr(request, "url", None), "path", "")
                if not path.startswith("/health"):
                    logger.info(
                        json.dumps(
                            {
                                "ts": datetime.utcnow().isoformat(),
                                "rid": rid,
                                "user_id": getattr(getattr(request, "state", None), "user_id", None),
                                "method": request.method,
                                "path": path,
                                "status": status_code,
                                "duration_ms": dur_ms,
                            },
                            ensure_ascii=False,
                        )
                    )
            except Exception:
                pass
        response.headers["X-Request-ID"] = rid
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        return response

    def _request_id(request: Request) -> str | None:
        rid = getattr(getattr(request, "state", None), "request_id", None)
        rid = str(rid or "").strip()
        return rid or None

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        rid = _request_id(request)
        detail = exc.detail
        if isinstance(detail, dict):
            error_code = str(detail.get("error_code") or "http_error")
            error_message = str(detail.get("error_message") or detail.get("detail") or "request failed")
        else:
            error_code = (
                "forbidden" if int(exc.status_code) == 403
                else "unauthorized" if int(exc.status_code) == 401
                else "not_found" if int(exc.status_code) == 404
                else "http_error"
            )
            error_message = str(detail or "request failed")

        payload = {
            "ok": False,
            "error_code": error_code,
            "error_message": error_message,
            "request_id": rid,
        }
        return JSONResponse(status_code=int(exc.status_code), content=payload, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        rid = _request_id(request)
        logger.exception("unhandled exception", extra={"rid": rid})
        return JSONResponse(
            status_code=500,
            content={
                "ok": False,
                "error_code": "internal_error",
                "error_message": "internal server error",
                "request_id": rid,
            },
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=True,
        allow_methods=["GET", "PUT", "POST", "OPTIONS"],
        allow_headers=["authorization", "content-type", "x-request-id"],
    )

    app.include_router(health.router)
    app.include_router(blocks.router)
    app.include_router(my.router)

    return app

app = create_app()
