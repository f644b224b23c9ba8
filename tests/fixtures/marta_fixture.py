"""Builders for MARTA feed payloads and mock transports."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import httpx

BASE_URL = "http://marta.test"
TRAIN_URL = f"{BASE_URL}/trains"
BUS_ALL_URL = f"{BASE_URL}/buses"
BUS_ROUTE_URL = f"{BASE_URL}/buses/route"


def build_train_record(**overrides: Any) -> Dict[str, Any]:
    record = {
        "DESTINATION": "Airport",
        "DIRECTION": "S",
        "EVENT_TIME": "11/2/2023 5:04:03 PM",
        "LINE": "RED",
        "NEXT_ARR": "05:04:03 PM",
        "STATION": "FIVE POINTS STATION",
        "TRAIN_ID": "301426",
        "WAITING_SECONDS": "120",
        "WAITING_TIME": "2 min",
    }
    record.update(overrides)
    return record


def build_bus_record(**overrides: Any) -> Dict[str, Any]:
    record = {
        "ADHERENCE": "-3",
        "BLOCKID": "409",
        "BLOCK_ABBR": "12-4",
        "DIRECTION": "Northbound",
        "LATITUDE": "33.7548",
        "LONGITUDE": "-84.3880",
        "MSGTIME": "11/2/2023 9:15:42 AM",
        "ROUTE": "12",
        "STOPID": "907812",
        "TIMEPOINT": "Ponce & Highland",
        "TRIPID": "7389112",
        "VEHICLE": "1503",
    }
    record.update(overrides)
    return record


def json_transport(
    payload: Any,
    seen: Optional[List[httpx.Request]] = None,
    status_code: int = 200,
) -> httpx.MockTransport:
    """Mock transport answering every request with ``payload`` as JSON."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, json=payload)

    return httpx.MockTransport(handler)


def raw_transport(body: bytes, seen: Optional[List[httpx.Request]] = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(200, content=body)

    return httpx.MockTransport(handler)


def failing_transport(build_error: Callable[[httpx.Request], Exception]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        raise build_error(request)

    return httpx.MockTransport(handler)
