import abc
from typing import Any, Dict, List, Optional

from kr8s.asyncio.objects import APIObject

from . import config


class DNSResource(abc.ABC):
    """
    Wraps a watched kr8s object (Service or Ingress) and exposes the
    capabilities the reconciler needs, independent of the resource kind.
    """

    kind: str = ""
    plural: str = ""

    def __init__(self, obj: APIObject):
        self.obj = obj

    @property
    def raw(self) -> Dict[str, Any]:
        return self.obj.raw

    @property
    def name(self) -> str:
        return (self.raw.get("metadata") or {}).get("name", "")

    @property
    def namespace(self) -> str:
        return (self.raw.get("metadata") or {}).get("namespace", "")

    @property
    def annotations(self) -> Dict[str, str]:
        return (self.raw.get("metadata") or {}).get("annotations") or {}

    @property
    def state_annotation(self) -> Optional[str]:
        return self.annotations.get(config.ANNOTATION_GOOGLE_CLOUD_DNS_STATE)

    def set_state_annotation(self, value: Optional[str]) -> None:
        metadata = self.raw.setdefault("metadata", {})
        if metadata.get("annotations") is None:
            metadata["annotations"] = {}
        if value is None:
            metadata["annotations"].pop(config.ANNOTATION_GOOGLE_CLOUD_DNS_STATE, None)
        else:
            metadata["annotations"][config.ANNOTATION_GOOGLE_CLOUD_DNS_STATE] = value

    def _load_balancer_ips(self) -> List[str]:
        ingress = ((self.raw.get("status") or {}).get("loadBalancer") or {}).get("ingress") or []
        return [entry["ip"] for entry in ingress if entry.get("ip")]

    @abc.abstractmethod
    def assigned_ips(self) -> List[str]:
        """Returns the external IP addresses assigned to the resource, in status order."""

    async def update(self) -> None:
        """
        Writes the state annotation back to the API server. The resourceVersion
        is sent along so a write based on a stale object is rejected.
        """
        metadata: Dict[str, Any] = {
            "annotations": {config.ANNOTATION_GOOGLE_CLOUD_DNS_STATE: self.state_annotation},
        }
        resource_version = (self.raw.get("metadata") or {}).get("resourceVersion")
        if resource_version:
            metadata["resourceVersion"] = resource_version
        await self.obj.patch({"metadata": metadata})

    def __str__(self) -> str:
        return f"{self.kind.capitalize()} {self.name}.{self.namespace}"


class ServiceResource(DNSResource):
    kind = "service"
    plural = "services"

    def assigned_ips(self) -> List[str]:
        if (self.raw.get("spec") or {}).get("type") != "LoadBalancer":
            return []
        return self._load_balancer_ips()


class IngressResource(DNSResource):
    kind = "ingress"
    plural = "ingresses"

    def assigned_ips(self) -> List[str]:
        return self._load_balancer_ips()


RESOURCE_TYPES = {
    ServiceResource.kind: ServiceResource,
    IngressResource.kind: IngressResource,
}


def wrap_resource(kind: str, obj: APIObject) -> DNSResource:
    """Wraps a kr8s object in the adapter for its kind."""
    return RESOURCE_TYPES[kind](obj)
