import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from .client import MartaRequestError, MartaResponseError, TrainArrival


logger = logging.getLogger("marta-service")


@dataclass(slots=True)
class FeedOutcome:
    feed: str
    arrivals: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None
    status_code: int = 200

    @property
    def ok(self) -> bool:
        return self.error is None


async def collect_feed(
    feed: str,
    fetch: Callable[[], Awaitable[Sequence[Any]]],
) -> FeedOutcome:
    """
    Core workflow: run one feed fetch and turn the records, or the failure, into an
    outcome the HTTP layer can render. Transport and payload failures stay distinguishable.
    """
    try:
        records = await fetch()
    except MartaRequestError as exc:
        logger.warning("MARTA %s feed unavailable: %s", feed, exc)
        return FeedOutcome(feed=feed, error="MARTA feed is unavailable.", status_code=502)
    except MartaResponseError as exc:
        logger.warning("MARTA %s feed returned malformed data: %s", feed, exc)
        return FeedOutcome(feed=feed, error="MARTA feed returned malformed data.", status_code=502)
    except ValueError as exc:
        logger.debug("Rejected %s feed request: %s", feed, exc)
        return FeedOutcome(feed=feed, error=str(exc), status_code=400)

    return FeedOutcome(feed=feed, arrivals=[asdict(record) for record in records])


def filter_by_station(arrivals: Sequence[TrainArrival], station: Optional[str]) -> List[TrainArrival]:
    """Keep the arrivals at one station, matched case-insensitively on the full name."""
    if not station or not station.strip():
        return list(arrivals)

    wanted = station.strip().casefold()
    return [arrival for arrival in arrivals if (arrival.station or "").casefold() == wanted]
