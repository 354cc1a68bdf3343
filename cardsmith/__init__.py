from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from cardsmith.config import Settings, load_settings
from cardsmith.db import open_store
from cardsmith.errors import StoreError


def create_app(settings: Settings | None = None) -> FastAPI:
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.settings = settings
        app.state.store = await open_store(settings.sqlite_path)
        try:
            yield
        finally:
            await app.state.store.close()

    application = FastAPI(
        title="cardsmith admin", version="0.1.0", lifespan=lifespan
    )

    @application.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    from cardsmith.routers import flashcards

    application.include_router(
        flashcards.router, prefix="/flashcards", tags=["flashcards"]
    )

    return application
