# Run from project root: uvicorn rag_middleware.main:app --reload

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from rag_middleware.api.routes import rag_router, router
from rag_middleware.core.config import LOG_LEVEL
from rag_middleware.services.middleware import shutdown_middleware

logging.basicConfig(level=LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    shutdown_middleware()


app = FastAPI(title="RAG Middleware", lifespan=lifespan)
app.include_router(router)
app.include_router(rag_router, prefix="/rag")
