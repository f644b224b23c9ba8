"""MARTA realtime train and bus feed client."""

from .client import (  # noqa: F401
    BusArrival,
    MartaClient,
    MartaError,
    MartaRequestError,
    MartaResponseError,
    TrainArrival,
)
from .service import FeedOutcome, collect_feed, filter_by_station  # noqa: F401
