# main.py
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
from fastapi_limiter import FastAPILimiter
import routes
from config.settings import settings
from config.cache import close_redis, get_redis
from core.credentials import ServiceAccountTokenProvider
from util.constants import InternalURIs, RATE_LIMIT_PREFIX
from util.enums import Environment, Color, ErrorMessage
from util.errors import AppError, ConfigurationError
from util.logger import init_logger

logger = logging.getLogger(__name__)


async def _real_ip(request: Request) -> str:
    if settings.TRUST_PROXY:
        fwd = request.headers.get("x-forwarded-for")
        if fwd:
            return fwd.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


@asynccontextmanager
async def lifespan(fastApi: FastAPI):
    init_logger(settings)
    print(f"{Color.GREEN}Initializing...{Color.RESET}")
    try:
        fastApi.state.token_provider = ServiceAccountTokenProvider.from_settings(settings)
    except ConfigurationError as e:
        logger.critical("config.credentials.failed err=%s", e)
        raise

    if settings.rate_limit_enabled:
        try:
            redis = await get_redis()
            await FastAPILimiter.init(redis, prefix=RATE_LIMIT_PREFIX, identifier=_real_ip)
        except Exception as e:
            print("Failed to connect to Redis:", e)
            raise
    print(f"{Color.BLUE}Server Started{Color.RESET} root={settings.DRIVE_ROOT_ID}")

    try:
        yield
    finally:
        if settings.rate_limit_enabled:
            try:
                await close_redis()
            except Exception as e:
                print("Error closing Redis:", e)

        print(f"{Color.RED}Server Shutdown{Color.RESET}")


app: FastAPI = FastAPI(lifespan=lifespan)


@app.get(InternalURIs.HEALTHZ)
async def healthz():
    return {"ok": True}


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code)


@app.exception_handler(429)
async def ratelimit_handler(request: Request, exc):
    info = ErrorMessage.RATE_LIMITED.value
    return PlainTextResponse(
        info.message,
        status_code=info.http_status,
        headers={"Retry-After": str(settings.RATE_LIMIT_SECONDS)},
    )


routes.register_routes(app)

if __name__ == "__main__":
    import uvicorn

    reload = settings.APP_ENV == Environment.DEV
    uvicorn.run("main:app", host=settings.HOST, port=settings.PORT, reload=reload)
