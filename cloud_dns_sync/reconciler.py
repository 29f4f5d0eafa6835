import logging
from typing import NamedTuple, Optional, Protocol

from .resources import DNSResource
from .state import get_current_state, get_desired_state
from .utils import split_hostnames, validate_hostname

logger = logging.getLogger(__name__)

STATUS_SKIPPED = "skipped"
STATUS_SUCCEEDED = "succeeded"
STATUS_FAILED = "failed"

RECORD_TYPE = "A"


class DNSGateway(Protocol):
    async def upsert(self, record_type: str, name: str, value: str) -> None: ...


class ReconcileOutcome(NamedTuple):
    status: str
    error: Optional[BaseException] = None


class DNSReconciler:
    """Converges the Cloud DNS records of a Service or Ingress towards its annotations."""

    gateway: DNSGateway

    def __init__(self, gateway: DNSGateway):
        self.gateway = gateway

    async def _upsert_hostnames(self, resource: DNSResource, initiator: str, hostnames: str, ip_address: str) -> None:
        """Upserts an A record per valid hostname; the first failure aborts the rest."""
        for hostname in split_hostnames(hostnames):
            if not validate_hostname(hostname):
                logger.error(f"[{initiator}] {resource} - Invalid dns record '{hostname}', skipping")
                continue

            logger.info(
                f"[{initiator}] {resource} - Upserting dns record {hostname} ({RECORD_TYPE}) to ip address {ip_address}..."
            )
            try:
                await self.gateway.upsert(RECORD_TYPE, hostname, ip_address)
            except Exception as e:
                logger.error(
                    f"[{initiator}] {resource} - Upserting dns record {hostname} ({RECORD_TYPE}) "
                    f"to ip address {ip_address} failed: {e}"
                )
                raise

    async def reconcile(self, resource: DNSResource, initiator: str) -> ReconcileOutcome:
        """
        Writes DNS records for the resource if its desired state drifted from
        the state it was last synced with, then stores the new state on the
        resource.

        Args:
            resource: The wrapped Service or Ingress.
            initiator: What triggered this reconciliation, used in log lines.

        Returns:
            The status and, for failures, the error that caused it.
        """
        try:
            desired = get_desired_state(resource)
            current = get_current_state(resource)
        except Exception as e:
            logger.error(f"[{initiator}] {resource} - Reading state failed: {e}")
            return ReconcileOutcome(STATUS_FAILED, e)

        if not desired.is_active:
            return ReconcileOutcome(STATUS_SKIPPED)

        if desired.ipAddress == current.ipAddress and desired.hostnames == current.hostnames:
            return ReconcileOutcome(STATUS_SKIPPED)

        try:
            await self._upsert_hostnames(resource, initiator, desired.hostnames, desired.ipAddress)
        except Exception as e:
            return ReconcileOutcome(STATUS_FAILED, e)

        logger.info(f"[{initiator}] {resource} - Updating {resource.kind} because state has changed...")
        previous = resource.state_annotation
        try:
            resource.set_state_annotation(desired.to_json())
        except Exception as e:
            logger.error(f"[{initiator}] {resource} - Marshalling state failed: {e}")
            return ReconcileOutcome(STATUS_FAILED, e)

        try:
            await resource.update()
        except Exception as e:
            logger.error(f"[{initiator}] {resource} - Updating {resource.kind} state has failed: {e}")
            # The stored state was not written, keep the object in line with the API server
            resource.set_state_annotation(previous)
            return ReconcileOutcome(STATUS_FAILED, e)

        logger.info(f"[{initiator}] {resource} - {resource.kind.capitalize()} has been updated successfully...")
        return ReconcileOutcome(STATUS_SUCCEEDED)
