import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from typerace.auth.guard import AuthorizationGuard
from typerace.auth.tokens import TokenStore
from typerace.config import settings
from typerace.db import increment_victories, init_db, random_text_line
from typerace.race.coordinator import MatchCoordinator

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


async def sweep_tokens(store: TokenStore, interval: float):
    """Delete expired session tokens every ``interval`` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        try:
            store.sweep()
        except Exception as e:
            logger.warning(f"Token sweep failed: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    store = TokenStore()
    app.state.token_store = store
    app.state.guard = AuthorizationGuard(store)
    app.state.coordinator = MatchCoordinator(
        pick_text=random_text_line,
        record_victory=increment_victories,
    )
    sweeper = asyncio.create_task(sweep_tokens(store, settings.token_sweep_interval_seconds))
    logger.info("typerace started")
    yield
    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass


app = FastAPI(title="typerace", version="0.1.0", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
async def health():
    return {"status": "ok"}


# Import routers after app is created to avoid circular imports
from typerace.auth.router import router as auth_router  # noqa: E402
from typerace.race.router import router as race_router  # noqa: E402
from typerace.texts.router import router as texts_router  # noqa: E402

app.include_router(auth_router)
app.include_router(texts_router)
app.include_router(race_router)
