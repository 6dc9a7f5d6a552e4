"""Test helpers: in-memory TSDB client fakes."""
from __future__ import annotations

import asyncio
from typing import Any, Callable


class FakeWriteApi:
    """Stand-in for the async InfluxDB write API, keeps points in memory."""

    def __init__(self) -> None:
        self.points: list[Any] = []
        self.calls: list[dict[str, Any]] = []
        self.error: Exception | None = None
        self.delay: float = 0.0
        # Optional per-point delay, takes precedence over ``delay``
        self.delay_for: Callable[[Any], float] | None = None

    async def write(self, bucket: str, org: str | None = None, record: Any = None, **kwargs: Any) -> bool:
        delay = self.delay_for(record) if self.delay_for is not None else self.delay
        if delay:
            await asyncio.sleep(delay)
        if self.error is not None:
            raise self.error
        self.calls.append({"bucket": bucket, "org": org, **kwargs})
        self.points.append(record)
        return True


class FakeInfluxClient:
    def __init__(self, *, ping_result: bool | Exception = True) -> None:
        self.ping_result = ping_result
        self.closed = False
        self._write_api = FakeWriteApi()

    def write_api(self) -> FakeWriteApi:
        return self._write_api

    async def ping(self) -> bool:
        if isinstance(self.ping_result, Exception):
            raise self.ping_result
        return self.ping_result

    async def close(self) -> None:
        self.closed = True


async def wait_for_points(client: FakeInfluxClient, count: int, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while len(client.write_api().points) < count:
        if loop.time() > deadline:
            raise AssertionError(f"expected {count} points, got {len(client.write_api().points)}")
        await asyncio.sleep(0.01)


def line_label(point: Any) -> str:
    """Extract the ``label`` tag from a point's line protocol."""
    head = point.to_line_protocol().split(" ", 1)[0]
    for part in head.split(",")[1:]:
        key, _, value = part.partition("=")
        if key == "label":
            return value
    return ""
