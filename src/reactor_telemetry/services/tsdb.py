"""Forwarding of reactor snapshots to InfluxDB as measurement points."""
from __future__ import annotations

import asyncio
from typing import Any, Callable

import structlog
from aiohttp import web
from influxdb_client import Point, WritePrecision
from influxdb_client.client.influxdb_client_async import InfluxDBClientAsync

from reactor_telemetry.domain.dto import ReactorSnapshot
from reactor_telemetry.settings import Settings

logger = structlog.get_logger(__name__)

MEASUREMENT = "reactor"

_TSDB_WRITER_KEY = "tsdb_writer"
_TSDB_CLIENT_FACTORY_KEY = "tsdb_client_factory"

ClientFactory = Callable[[Settings], Any]


def build_point(snapshot: ReactorSnapshot) -> Point:
    """Map a snapshot onto the ``reactor`` measurement."""
    return (
        Point(MEASUREMENT)
        .tag("label", snapshot.computer_label)
        .tag("reactor_type", snapshot.reactor_type)
        .field("energy_stored", snapshot.energy_stored)
        .field("energy_produced", snapshot.energy_produced_last_tick)
        .field("fuel_temp", snapshot.fuel_temp)
        .field("casing_temp", snapshot.casing_temp)
        .field("fuel_amount", snapshot.fuel_amount)
        .field("waste_amount", snapshot.waste_amount)
        .field("fuel_used", snapshot.fuel_consumed_last_tick)
        .field("reactivity", snapshot.fuel_reactivity)
        .field("rod_insertion", snapshot.control_rod_insertion)
        .field("status", snapshot.status)
        .time(snapshot.timestamp, WritePrecision.S)
    )


def mask_token(token: str) -> str:
    if not token:
        return "<empty>"
    return token[:5] + "..."


def create_influx_client(settings: Settings) -> InfluxDBClientAsync:
    """Create the shared async InfluxDB client. Must run inside the event loop."""
    timeout_seconds = max(settings.tsdb_write_timeout_seconds, settings.tsdb_health_timeout_seconds)
    return InfluxDBClientAsync(
        url=settings.influx_url,
        token=settings.influx_token,
        org=settings.influx_org,
        timeout=int(timeout_seconds * 1000),
    )


class TSDBWriter:
    """Best-effort, non-blocking writer of snapshots to the TSDB.

    ``submit`` never waits on the database. By default every point is written
    from its own task; with ``ordered=True`` points go through a queue drained
    by a single consumer so they reach the TSDB in submission order. Each write
    has its own deadline. Failures are logged and dropped, there is no retry.
    """

    def __init__(
        self,
        client: Any,
        *,
        bucket: str,
        org: str,
        write_timeout_seconds: float = 5.0,
        ordered: bool = False,
    ) -> None:
        self._client = client
        self._write_api = client.write_api()
        self.bucket = bucket
        self.org = org
        self.write_timeout_seconds = write_timeout_seconds
        self.ordered = ordered
        self.healthy: bool | None = None
        self._tasks: set[asyncio.Task] = set()
        self._queue: asyncio.Queue[Point] | None = None
        self._consumer: asyncio.Task | None = None

    def start(self) -> None:
        if self.ordered and self._consumer is None:
            self._queue = asyncio.Queue()
            self._consumer = asyncio.create_task(self._consume())

    async def probe(self, timeout_seconds: float) -> bool:
        """Ping the TSDB once. A failure is reported, never raised."""
        logger.info("Testing TSDB connection", timeout_seconds=timeout_seconds)
        try:
            ok = await asyncio.wait_for(self._client.ping(), timeout=timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("TSDB health check timed out", timeout_seconds=timeout_seconds)
            ok = False
        except Exception as exc:
            logger.warning("TSDB health check failed", error=str(exc), error_type=type(exc).__name__)
            ok = False
        else:
            if ok:
                logger.info("TSDB connected")
            else:
                logger.warning("TSDB health check failed", error="ping returned not ready")
        self.healthy = bool(ok)
        return self.healthy

    def submit(self, snapshot: ReactorSnapshot) -> None:
        point = build_point(snapshot)
        if self._queue is not None:
            self._queue.put_nowait(point)
            return
        task = asyncio.create_task(self._write(point))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def pending(self) -> int:
        queued = self._queue.qsize() if self._queue is not None else 0
        return len(self._tasks) + queued

    async def _write(self, point: Point) -> bool:
        try:
            await asyncio.wait_for(
                self._write_api.write(
                    bucket=self.bucket,
                    org=self.org,
                    record=point,
                    write_precision=WritePrecision.S,
                ),
                timeout=self.write_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.error("TSDB write timed out", timeout_seconds=self.write_timeout_seconds)
            return False
        except Exception as exc:
            logger.error("Failed to write to TSDB", error=str(exc), error_type=type(exc).__name__)
            return False
        logger.info("Wrote snapshot to TSDB")
        return True

    async def _consume(self) -> None:
        assert self._queue is not None
        while True:
            point = await self._queue.get()
            try:
                await self._write(point)
            finally:
                self._queue.task_done()

    async def _drain(self) -> None:
        if self._queue is not None:
            await self._queue.join()
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def close(self, drain_timeout_seconds: float = 5.0) -> None:
        """Wait for in-flight writes up to the drain budget, then close the client."""
        try:
            await asyncio.wait_for(self._drain(), timeout=drain_timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("TSDB drain timed out, dropping pending writes", pending=self.pending())

        leftovers = list(self._tasks)
        if self._consumer is not None:
            leftovers.append(self._consumer)
        for task in leftovers:
            task.cancel()
        await asyncio.gather(*leftovers, return_exceptions=True)
        self._consumer = None
        self._queue = None

        await self._client.close()


def get_tsdb_writer(app: web.Application) -> TSDBWriter | None:
    return app.get(_TSDB_WRITER_KEY)


def set_tsdb_client_factory(app: web.Application, factory: ClientFactory) -> None:
    app[_TSDB_CLIENT_FACTORY_KEY] = factory


def create_tsdb_hooks(settings: Settings):
    """Create aiohttp startup/cleanup hooks owning the shared TSDB writer."""

    async def start_tsdb_writer(app: web.Application) -> None:
        factory: ClientFactory = app.get(_TSDB_CLIENT_FACTORY_KEY, create_influx_client)
        logger.info(
            "Initializing TSDB client",
            url=settings.influx_url,
            org=settings.influx_org,
            bucket=settings.influx_bucket,
            token=mask_token(settings.influx_token),
        )
        writer = TSDBWriter(
            factory(settings),
            bucket=settings.influx_bucket,
            org=settings.influx_org,
            write_timeout_seconds=settings.tsdb_write_timeout_seconds,
            ordered=settings.tsdb_ordered_writes,
        )
        writer.start()
        app[_TSDB_WRITER_KEY] = writer
        await writer.probe(settings.tsdb_health_timeout_seconds)
        logger.info("TSDB initialization complete", ordered_writes=writer.ordered)

    async def stop_tsdb_writer(app: web.Application) -> None:
        writer = get_tsdb_writer(app)
        if writer is not None:
            await writer.close(settings.tsdb_drain_timeout_seconds)

    return start_tsdb_writer, stop_tsdb_writer
