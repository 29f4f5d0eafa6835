import asyncio
import logging
import signal
from typing import List, Optional, Set

import kr8s.asyncio
from aiohttp import web
from watchdog.observers import Observer

from . import config
from .credentials import watch_credentials_file
from .dns_gateway import GoogleCloudDNSGateway
from .inflight import InFlightTracker
from .metrics import OutcomeRecorder, PrometheusOutcomeRecorder
from .reconciler import DNSReconciler
from .resources import IngressResource, ServiceResource
from .server import start_http_servers
from .watchers import TriggerLoops

logger = logging.getLogger(__name__)


class CloudDNSSyncApp:
    """Main application class syncing annotated Services and Ingresses to Google Cloud DNS."""

    def __init__(self, recorder: Optional[OutcomeRecorder] = None):
        self.gateway: Optional[GoogleCloudDNSGateway] = None
        self.tracker = InFlightTracker()
        self.recorder = recorder or PrometheusOutcomeRecorder()
        self.observer: Optional[Observer] = None
        self.runners: List[web.AppRunner] = []
        self.shutdown_requested = asyncio.Event()
        self.reload_tasks: Set[asyncio.Task] = set()

    async def setup(self) -> None:
        """Creates the Kubernetes and Google Cloud DNS clients and starts the HTTP endpoints."""
        missing = config.missing_required_settings()
        if missing:
            logger.error(f"Missing required configuration: {', '.join(missing)}")
            raise SystemExit(1)

        try:
            await kr8s.asyncio.api()
        except Exception as e:
            logger.error(f"Creating Kubernetes api client failed: {e}")
            raise SystemExit(1)

        try:
            self.gateway = GoogleCloudDNSGateway(
                config.GOOGLE_CLOUD_DNS_PROJECT,
                config.GOOGLE_CLOUD_DNS_ZONE,
                credentials_file=config.GOOGLE_APPLICATION_CREDENTIALS,
                ttl=config.DNS_RECORD_TTL,
            )
        except Exception as e:
            logger.error(f"Creating Google Cloud DNS client failed: {e}")
            raise SystemExit(1)

        self.observer = watch_credentials_file(config.GOOGLE_APPLICATION_CREDENTIALS, self._reload_credentials)
        self.runners = await start_http_servers(config.METRICS_PORT, config.LIVENESS_PORT)

    def _reload_credentials(self) -> None:
        """Re-initializes the DNS client in a worker thread."""
        task = asyncio.create_task(asyncio.to_thread(self.gateway.reload), name="credentials-reload")
        self.reload_tasks.add(task)
        task.add_done_callback(self.reload_tasks.discard)

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info(f"Received signal {sig.name}. Waiting on running tasks to finish...")
        self.shutdown_requested.set()

    async def teardown(self) -> None:
        if self.observer is not None:
            self.observer.stop()
            self.observer.join(timeout=2.0)
        for runner in self.runners:
            await runner.cleanup()

    async def run(self) -> None:
        """Runs the watch loops and the periodic sweep until a termination signal arrives."""
        logger.info(
            f"Starting google-cloud-dns-sync {config.VERSION} for project "
            f"'{config.GOOGLE_CLOUD_DNS_PROJECT}', zone '{config.GOOGLE_CLOUD_DNS_ZONE}'..."
        )
        await self.setup()

        loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            loop.add_signal_handler(sig, self._on_signal, sig)

        trigger_loops = TriggerLoops(DNSReconciler(self.gateway), self.recorder, self.tracker)
        tasks = [
            asyncio.create_task(trigger_loops.watch(ServiceResource.kind), name="service-watcher"),
            asyncio.create_task(trigger_loops.watch(IngressResource.kind), name="ingress-watcher"),
            asyncio.create_task(trigger_loops.sweep(), name="poller"),
        ]

        shutdown_task = asyncio.create_task(self.shutdown_requested.wait())
        done, _ = await asyncio.wait([shutdown_task, *tasks], return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if task is not shutdown_task and task.exception() is not None:
                logger.error(f"Task '{task.get_name()}' stopped unexpectedly: {task.exception()}")

        await self.tracker.drain(config.SHUTDOWN_GRACE_SECONDS)
        shutdown_task.cancel()
        for task in tasks:
            task.cancel()
        await asyncio.gather(shutdown_task, *tasks, return_exceptions=True)
        await self.teardown()

        logger.info("Shutting down...")


def cli():
    """Main command-line entrypoint."""
    app = CloudDNSSyncApp()
    try:
        asyncio.run(app.run())
    except (KeyboardInterrupt, SystemExit) as e:
        if isinstance(e, SystemExit) and e.code == 0:
            logger.info("Exiting normally.")
        elif isinstance(e, SystemExit):
            logger.error(f"Exiting due to fatal error (code {e.code}).")
            raise
        else:
            logger.info("Exiting.")


if __name__ == "__main__":
    cli()
