from typing import Protocol

from prometheus_client import REGISTRY, CollectorRegistry, Counter


class OutcomeRecorder(Protocol):
    """Records the outcome of a single reconciliation."""

    def record(self, namespace: str, status: str, initiator: str, resource_type: str) -> None: ...


class PrometheusOutcomeRecorder:
    """Counts reconciliation outcomes per namespace, status, initiator and resource type."""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.dns_records_totals = Counter(
            "estafette_google_cloud_dns_record_totals",
            "Number of updated Google Cloud DNS records.",
            ["namespace", "status", "initiator", "type"],
            registry=registry,
        )

    def record(self, namespace: str, status: str, initiator: str, resource_type: str) -> None:
        self.dns_records_totals.labels(
            namespace=namespace,
            status=status,
            initiator=initiator,
            type=resource_type,
        ).inc()
