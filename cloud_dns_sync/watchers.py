import asyncio
import contextlib
import logging
from typing import Any, AsyncIterator, Tuple

import kr8s.asyncio

from . import config
from .inflight import InFlightTracker, ShuttingDown
from .metrics import OutcomeRecorder
from .reconciler import DNSReconciler
from .resources import RESOURCE_TYPES, DNSResource, wrap_resource
from .utils import apply_jitter

logger = logging.getLogger(__name__)

RECONCILED_EVENTS = ("ADDED", "MODIFIED")


class TriggerLoops:
    """
    Feeds Services and Ingresses into the reconciler: one watch loop per
    resource kind plus a periodic sweep over all of them as a safety net.
    """

    def __init__(self, reconciler: DNSReconciler, recorder: OutcomeRecorder, tracker: InFlightTracker):
        self.reconciler = reconciler
        self.recorder = recorder
        self.tracker = tracker

    async def process(self, resource: DNSResource, initiator: str, counter_initiator: str) -> str:
        """
        Reconciles a single resource and records the outcome.

        Returns:
            The reconciliation status.
        """
        async with self.tracker.track():
            status, error = await self.reconciler.reconcile(resource, initiator)
        self.recorder.record(resource.namespace, status, counter_initiator, resource.kind)
        if error is not None:
            logger.error(f"Processing {resource} failed: {error}")
        return status

    async def _sleep(self, base: int) -> None:
        sleep_time = apply_jitter(base)
        logger.info(f"Sleeping for {sleep_time} seconds...")
        await asyncio.sleep(sleep_time)

    async def _watch_events(self, plural: str) -> AsyncIterator[Tuple[str, Any]]:
        """
        Yields watch events until the stream ends or the watch timeout elapses.
        Only waiting for the next event is bounded by the timeout, handling an
        event is not.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + config.WATCH_TIMEOUT_SECONDS
        events = aiter(kr8s.asyncio.watch(plural, namespace=kr8s.ALL))
        try:
            while (remaining := deadline - loop.time()) > 0:
                try:
                    yield await asyncio.wait_for(anext(events), remaining)
                except StopAsyncIteration:
                    return
                except asyncio.TimeoutError:
                    logger.debug(f"Watch on {plural} reached its {config.WATCH_TIMEOUT_SECONDS}s timeout")
                    return
        finally:
            if hasattr(events, "aclose"):
                await events.aclose()

    async def watch(self, kind: str) -> None:
        """Watches one resource kind across all namespaces, reconnecting forever."""
        plural = RESOURCE_TYPES[kind].plural
        while not self.tracker.stopping:
            logger.info(f"Watching {plural} for all namespaces...")
            try:
                async with contextlib.aclosing(self._watch_events(plural)) as events:
                    async for event, obj in events:
                        if event not in RECONCILED_EVENTS:
                            continue
                        await self.process(wrap_resource(kind, obj), f"watcher:{event}", "watcher")
            except ShuttingDown:
                break
            except Exception as e:
                logger.error(f"Getting next event from {plural} watcher failed: {e}")

            await self._sleep(config.WATCH_RETRY_SECONDS)

    async def _sweep_kind(self, kind: str) -> None:
        plural = RESOURCE_TYPES[kind].plural
        logger.info(f"Listing {plural} for all namespaces...")
        try:
            objs = [obj async for obj in kr8s.asyncio.get(plural, namespace=kr8s.ALL)]
        except Exception as e:
            logger.error(f"Listing {plural} failed: {e}")
            return
        logger.info(f"Cluster has {len(objs)} {plural}")

        for obj in objs:
            await self.process(wrap_resource(kind, obj), "poller", "poller")

    async def sweep(self) -> None:
        """Periodically reconciles every Service and Ingress in the cluster."""
        while not self.tracker.stopping:
            try:
                for kind in RESOURCE_TYPES:
                    await self._sweep_kind(kind)
            except ShuttingDown:
                break

            await self._sleep(config.SWEEP_INTERVAL_SECONDS)
