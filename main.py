import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import PlainTextResponse

from marta.client import MartaClient
from marta.service import FeedOutcome, collect_feed, filter_by_station


logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("marta-app")

MARTA_TIMEOUT_SECONDS = float(os.getenv("MARTA_TIMEOUT_SECONDS", "15"))
MARTA_HOST = os.getenv("MARTA_HOST", "127.0.0.1")
MARTA_PORT = int(os.getenv("MARTA_PORT", "8000"))

app = FastAPI(title="MARTA Realtime Feeds", version="0.1.0")
_marta_client = MartaClient(timeout_seconds=MARTA_TIMEOUT_SECONDS)


def get_marta_client() -> MartaClient:
    return _marta_client


@app.get("/healthz", response_class=PlainTextResponse)
async def healthcheck() -> str:
    """Simple healthcheck endpoint for deployment monitoring."""
    return "ok"


@app.get("/trains")
async def train_arrivals(
    station: Optional[str] = None,
    client: MartaClient = Depends(get_marta_client),
) -> List[Dict[str, Any]]:
    """Realtime train arrivals, optionally narrowed to one station."""

    async def fetch():
        arrivals = await client.fetch_train_arrivals()
        return filter_by_station(arrivals, station)

    return _render(await collect_feed("train", fetch))


@app.get("/buses")
async def all_bus_arrivals(client: MartaClient = Depends(get_marta_client)) -> List[Dict[str, Any]]:
    return _render(await collect_feed("bus", client.fetch_all_bus_arrivals))


@app.get("/buses/{route}")
async def bus_arrivals_by_route(route: str, client: MartaClient = Depends(get_marta_client)) -> List[Dict[str, Any]]:
    outcome = await collect_feed(
        f"bus route {route}",
        lambda: client.fetch_bus_arrivals_by_route(route),
    )
    return _render(outcome)


def _render(outcome: FeedOutcome) -> List[Dict[str, Any]]:
    if not outcome.ok:
        raise HTTPException(status_code=outcome.status_code, detail=outcome.error)

    logger.info("Serving %d %s records", len(outcome.arrivals), outcome.feed)
    return outcome.arrivals


def run() -> None:
    """Serve the app with uvicorn (installed with the ``server`` extra)."""
    import uvicorn

    logger.info("Serving MARTA feeds on %s:%s", MARTA_HOST, MARTA_PORT)
    uvicorn.run(app, host=MARTA_HOST, port=MARTA_PORT)


if __name__ == "__main__":
    run()
