from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar
from urllib.parse import quote

import httpx


LOGGER = logging.getLogger("marta-client")

REALTIME_TRAIN_ENDPOINT = "http://developer.itsmarta.com/RealtimeTrain/RestServiceNextTrain/GetRealtimeArrivals"
REALTIME_BUS_ALL_ENDPOINT = "http://developer.itsmarta.com/BRDRestService/RestBusRealTimeService/GetAllBus"
REALTIME_BUS_ROUTE_ENDPOINT = "http://developer.itsmarta.com/BRDRestService/RestBusRealTimeService/GetBusByRoute"

# e.g. "11/2/2023 5:04:03 PM"; strptime accepts unpadded month, day and hour.
FEED_TIMESTAMP_FORMAT = "%m/%d/%Y %I:%M:%S %p"

T = TypeVar("T")


class MartaError(Exception):
    """Base error for issues communicating with the MARTA realtime feeds."""


class MartaRequestError(MartaError):
    """Raised when the request to a MARTA feed fails at the transport level."""

    def __init__(self, message: str, error: Optional[Exception] = None) -> None:
        super().__init__(message)
        self.error = error


class MartaResponseError(MartaError):
    """Raised when a MARTA feed returns a payload that cannot be mapped."""


@dataclass(frozen=True, slots=True)
class TrainArrival:
    destination: Optional[str]
    direction: Optional[str]
    event_time: datetime
    line: Optional[str]
    next_arr: datetime
    station: Optional[str]
    train_id: Optional[str]
    waiting_seconds: int
    waiting_time: Optional[str]


@dataclass(frozen=True, slots=True)
class BusArrival:
    adherence: int
    block_id: Optional[str]
    block_abbr: Optional[str]
    direction: Optional[str]
    latitude: float
    longitude: float
    msg_time: datetime
    route: Optional[str]
    stop_id: Optional[str]
    timepoint: Optional[str]
    trip_id: Optional[str]
    vehicle: Optional[str]


class MartaClient:
    """Client wrapper around the MARTA realtime train and bus feeds."""

    def __init__(
        self,
        *,
        train_url: str = REALTIME_TRAIN_ENDPOINT,
        bus_all_url: str = REALTIME_BUS_ALL_ENDPOINT,
        bus_route_url: str = REALTIME_BUS_ROUTE_ENDPOINT,
        api_key: Optional[str] = None,
        timeout_seconds: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.train_url = train_url
        self.bus_all_url = bus_all_url
        self.bus_route_url = bus_route_url.rstrip("/")
        self.api_key = api_key or os.getenv("MARTA_API_KEY")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def fetch_feed_payload(self, url: str, feed: str) -> List[Any]:
        """Fetch a MARTA feed and return the decoded JSON array."""
        LOGGER.debug("Fetching %s feed from %s", feed, _redact(url))

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self._transport) as client:
                response = await client.get(url)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            LOGGER.debug(
                "MARTA returned HTTP %s for the %s feed", exc.response.status_code, feed)
            raise MartaRequestError(
                f"MARTA returned HTTP {exc.response.status_code} for the {feed} feed", exc
            ) from exc
        except httpx.RequestError as exc:
            LOGGER.debug("Unable to reach MARTA %s feed: %s", feed, exc)
            raise MartaRequestError(
                f"Unable to reach MARTA {feed} feed: {exc}", exc) from exc

        try:
            payload = response.json()
        except ValueError as exc:
            LOGGER.debug("MARTA %s response was not valid JSON", feed)
            raise MartaResponseError(
                f"MARTA {feed} response was not valid JSON.") from exc

        if not isinstance(payload, list):
            raise MartaResponseError(
                f"MARTA {feed} response was a JSON {type(payload).__name__}, expected an array.")
        return payload

    async def fetch_train_arrivals(self, api_key: Optional[str] = None) -> List[TrainArrival]:
        """Fetch realtime train arrivals for every station."""
        key = api_key if api_key is not None else self.api_key
        if key is None:
            raise ValueError("api_key must be provided or set via MARTA_API_KEY.")

        url = f"{self.train_url}?apikey={quote(key, safe='')}"
        payload = await self.fetch_feed_payload(url, "train")
        return _map_records(payload, _parse_train_arrival, "train")

    async def fetch_all_bus_arrivals(self) -> List[BusArrival]:
        """Fetch realtime positions for every bus in service."""
        payload = await self.fetch_feed_payload(self.bus_all_url, "bus")
        return _map_records(payload, _parse_bus_arrival, "bus")

    async def fetch_bus_arrivals_by_route(self, route: str) -> List[BusArrival]:
        """Fetch realtime positions for the buses running a single route."""
        if not route:
            raise ValueError("route must be provided.")

        url = f"{self.bus_route_url}/{quote(str(route), safe='')}"
        payload = await self.fetch_feed_payload(url, f"bus route {route}")
        return _map_records(payload, _parse_bus_arrival, f"bus route {route}")

    async def fetch_bus_arrivals_for_routes(self, routes: Iterable[str]) -> Dict[str, List[BusArrival]]:
        """
        Fetch bus arrivals for several routes concurrently.
        Returns a dictionary mapping each route to its arrivals.
        Any failed request aborts the batch with that request's error.
        """
        unique_routes = list(dict.fromkeys(routes))
        results = await asyncio.gather(
            *[self.fetch_bus_arrivals_by_route(route) for route in unique_routes]
        )
        return dict(zip(unique_routes, results))


def _map_records(payload: List[Any], parse: Callable[[Dict[str, Any]], T], feed: str) -> List[T]:
    records: List[T] = []

    for index, entry in enumerate(payload):
        if not isinstance(entry, dict):
            raise MartaResponseError(
                f"MARTA {feed} record {index} is not an object: {entry!r}")
        try:
            records.append(parse(entry))
        except (KeyError, TypeError, ValueError) as exc:
            LOGGER.debug("Unable to map MARTA %s record %s: %s", feed, index, exc)
            raise MartaResponseError(
                f"Unexpected MARTA {feed} record {index}: {exc}") from exc

    LOGGER.debug("Mapped %d %s records", len(records), feed)
    return records


def _parse_train_arrival(entry: Dict[str, Any]) -> TrainArrival:
    event_time = _parse_timestamp(entry["EVENT_TIME"])

    return TrainArrival(
        destination=entry.get("DESTINATION"),
        direction=entry.get("DIRECTION"),
        event_time=event_time,
        line=entry.get("LINE"),
        next_arr=datetime.combine(date.today(), event_time.time()),
        station=entry.get("STATION"),
        train_id=entry.get("TRAIN_ID"),
        waiting_seconds=_parse_int(entry["WAITING_SECONDS"]),
        waiting_time=entry.get("WAITING_TIME"),
    )


def _parse_bus_arrival(entry: Dict[str, Any]) -> BusArrival:
    return BusArrival(
        adherence=_parse_int(entry["ADHERENCE"]),
        block_id=entry.get("BLOCKID"),
        block_abbr=entry.get("BLOCK_ABBR"),
        direction=entry.get("DIRECTION"),
        latitude=float(entry["LATITUDE"]),
        longitude=float(entry["LONGITUDE"]),
        msg_time=_parse_timestamp(entry["MSGTIME"]),
        route=entry.get("ROUTE"),
        stop_id=entry.get("STOPID"),
        timepoint=entry.get("TIMEPOINT"),
        trip_id=entry.get("TRIPID"),
        vehicle=entry.get("VEHICLE"),
    )


def _parse_int(value: Any) -> int:
    return int(str(value), 10)


def _parse_timestamp(value: Any) -> datetime:
    return datetime.strptime(str(value).strip(), FEED_TIMESTAMP_FORMAT)


def _redact(url: str) -> str:
    base, sep, _query = url.partition("?apikey=")
    return f"{base}{sep}***" if sep else url
