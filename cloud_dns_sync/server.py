import logging
from typing import List

from aiohttp import web
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, generate_latest

logger = logging.getLogger(__name__)


def create_metrics_app(registry: CollectorRegistry = REGISTRY) -> web.Application:
    async def metrics(request: web.Request) -> web.Response:
        response = web.Response(body=generate_latest(registry))
        response.headers["Content-Type"] = CONTENT_TYPE_LATEST
        return response

    app = web.Application()
    app.router.add_get("/metrics", metrics)
    return app


def create_liveness_app() -> web.Application:
    async def liveness(request: web.Request) -> web.Response:
        return web.Response(text="I'm alive!")

    app = web.Application()
    app.router.add_get("/liveness", liveness)
    return app


async def start_http_servers(metrics_port: int, liveness_port: int) -> List[web.AppRunner]:
    """
    Serves Prometheus metrics and the liveness probe on their own ports.

    Returns:
        The runners, to be cleaned up on shutdown.
    """
    runners = []
    for app, port in ((create_metrics_app(), metrics_port), (create_liveness_app(), liveness_port)):
        runner = web.AppRunner(app)
        await runner.setup()
        await web.TCPSite(runner, "0.0.0.0", port).start()
        runners.append(runner)

    logger.info(f"Serving Prometheus metrics on :{metrics_port}/metrics and liveness on :{liveness_port}/liveness")
    return runners
