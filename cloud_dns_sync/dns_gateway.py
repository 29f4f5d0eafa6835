import asyncio
import logging
import threading
from typing import List, Sequence

from google.cloud import dns
from google.oauth2 import service_account

logger = logging.getLogger(__name__)


def to_fqdn(name: str) -> str:
    """Cloud DNS record names are fully qualified, with a trailing dot."""
    return name if name.endswith(".") else f"{name}."


class GoogleCloudDNSGateway:
    """Creates or replaces record sets in a single Google Cloud DNS managed zone."""

    def __init__(self, project: str, zone_name: str, credentials_file: str = "", ttl: int = 300):
        self.project = project
        self.zone_name = zone_name
        self.credentials_file = credentials_file
        self.ttl = ttl
        self._lock = threading.Lock()
        self._zone = self._create_zone()

    def _create_zone(self) -> dns.ManagedZone:
        if self.credentials_file:
            credentials = service_account.Credentials.from_service_account_file(self.credentials_file)
            client = dns.Client(project=self.project, credentials=credentials)
        else:
            # Falls back to application default credentials
            client = dns.Client(project=self.project)
        return client.zone(self.zone_name)

    @property
    def zone(self) -> dns.ManagedZone:
        with self._lock:
            return self._zone

    def reload(self) -> bool:
        """
        Re-initializes the Cloud DNS client, e.g. after the credentials file
        has been rotated. The previous client is kept if this fails.

        Returns:
            True if the client was replaced.
        """
        try:
            zone = self._create_zone()
        except Exception as e:
            logger.error(f"Re-initializing Google Cloud DNS client failed, keeping the current one: {e}")
            return False
        with self._lock:
            self._zone = zone
        logger.info(f"Re-initialized Google Cloud DNS client for zone '{self.zone_name}'")
        return True

    def _list_records(self, zone: dns.ManagedZone, fqdn: str, record_type: str) -> List[dns.ResourceRecordSet]:
        # list_resource_record_sets takes no name or type filter, the whole zone is paged through
        return [
            record_set
            for record_set in zone.list_resource_record_sets()
            if record_set.name == fqdn and record_set.record_type == record_type
        ]

    async def list_records(self, name: str, record_type: str) -> List[dns.ResourceRecordSet]:
        """Lists the record sets in the zone matching name and type."""
        return await asyncio.to_thread(self._list_records, self.zone, to_fqdn(name), record_type)

    def _apply_change(
        self,
        zone: dns.ManagedZone,
        additions: Sequence[dns.ResourceRecordSet],
        deletions: Sequence[dns.ResourceRecordSet],
    ) -> dns.Changes:
        changes = zone.changes()
        for record_set in deletions:
            changes.delete_record_set(record_set)
        for record_set in additions:
            changes.add_record_set(record_set)
        changes.create()
        return changes

    async def apply_change(
        self,
        additions: Sequence[dns.ResourceRecordSet],
        deletions: Sequence[dns.ResourceRecordSet] = (),
    ) -> dns.Changes:
        """Submits deletions and additions as one change request."""
        return await asyncio.to_thread(self._apply_change, self.zone, additions, deletions)

    async def upsert(self, record_type: str, name: str, value: str) -> None:
        """
        Creates or replaces the record set for name and type. Existing record
        sets are deleted in the same change that adds the new one, so a single
        round trip removes the stale record and installs the new one.

        Args:
            record_type: The record type, e.g. "A".
            name: The hostname, without trailing dot.
            value: The single record value.
        """
        zone = self.zone
        fqdn = to_fqdn(name)
        record = zone.resource_record_set(fqdn, record_type, self.ttl, [value])

        existing = await self.list_records(name, record_type)
        if len(existing) == 1 and existing[0].ttl == self.ttl and list(existing[0].rrdatas) == [value]:
            logger.debug(f"Record {fqdn} ({record_type}) already points to {value}")
            return

        logger.debug(
            f"Sending change to Google Cloud DNS: delete {[(r.name, r.rrdatas) for r in existing]}, "
            f"add {(fqdn, record_type, self.ttl, [value])}"
        )
        changes = await self.apply_change([record], existing)
        logger.debug(f"Response from Google Cloud DNS: change {changes.name} is {changes.status}")
