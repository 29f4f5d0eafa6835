import json
from dataclasses import asdict, dataclass

from . import config
from .resources import DNSResource


@dataclass(frozen=True)
class DNSSyncState:
    """The last applied (or desired) Cloud DNS state of a resource."""

    enabled: str = ""
    hostnames: str = ""
    ipAddress: str = ""

    @property
    def is_active(self) -> bool:
        return self.enabled == "true" and len(self.hostnames) > 0 and self.ipAddress != ""

    def to_json(self) -> str:
        return json.dumps(asdict(self), separators=(",", ":"))

    @classmethod
    def from_json(cls, value: str) -> "DNSSyncState":
        data = json.loads(value)
        if not isinstance(data, dict):
            raise ValueError(f"Expected a JSON object, got {type(data).__name__}")
        return cls(
            enabled=str(data.get("enabled", "")),
            hostnames=str(data.get("hostnames", "")),
            ipAddress=str(data.get("ipAddress", "")),
        )


def get_desired_state(resource: DNSResource) -> DNSSyncState:
    """
    Derives the desired state from the resource's annotations and its
    load balancer status.

    Args:
        resource: The wrapped Service or Ingress.

    Returns:
        The desired state; ipAddress is empty while no address is assigned.
    """
    annotations = resource.annotations
    ips = resource.assigned_ips()
    return DNSSyncState(
        enabled=annotations.get(config.ANNOTATION_GOOGLE_CLOUD_DNS, "false"),
        hostnames=annotations.get(config.ANNOTATION_GOOGLE_CLOUD_DNS_HOSTNAMES, ""),
        ipAddress=ips[0] if ips else "",
    )


def get_current_state(resource: DNSResource) -> DNSSyncState:
    """
    Reads the state stored in the state annotation. Missing or malformed
    state yields an empty state, which forces a fresh write.
    """
    stored = resource.state_annotation
    if not stored:
        return DNSSyncState()
    try:
        return DNSSyncState.from_json(stored)
    except ValueError:
        return DNSSyncState()
