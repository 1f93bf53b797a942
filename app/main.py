import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from app.core.config import CORS_ORIGINS, LOG_LEVEL
from app.core.errors import ManifestError
from app.routers.files import router as files_router
from app.routers.instances import router as instance_router
from app.utils.logger import set_log_level, setup_logger

logger = setup_logger("Terra.HTTP")
# Áp dụng LOG_LEVEL cho mọi logger đã tạo (Terra.Manifest, Terra.HTTP, ...)
set_log_level(LOG_LEVEL)

app = FastAPI(title="Terra File Server", version="0.2.0")

app.add_middleware(
  CORSMiddleware,
  allow_origins=CORS_ORIGINS,
  allow_methods=["GET", "POST"],
  allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
  started = time.perf_counter()
  response = await call_next(request)
  elapsed_ms = (time.perf_counter() - started) * 1000
  logger.info(f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
  return response


@app.exception_handler(ManifestError)
async def manifest_error_handler(request: Request, exc: ManifestError):
  # Không trả stack trace hay đường dẫn tuyệt đối cho client
  if exc.status_code >= 500:
    logger.error(f"[{exc.kind}] instance={exc.instance} path={exc.path}: {exc.message}")
  return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.get("/", response_class=PlainTextResponse)
def health():
  return "Terra File Server OK"


app.include_router(instance_router, prefix="/instances", tags=["instances"])
app.include_router(files_router, prefix="/files", tags=["files"])
