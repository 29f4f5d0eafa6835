import json
from typing import Any

import pytest

from cloud_dns_sync import config
from cloud_dns_sync.resources import DNSResource, IngressResource, ServiceResource
from cloud_dns_sync.state import DNSSyncState, get_current_state, get_desired_state


class FakeObject:
    def __init__(self, raw: dict[str, Any]) -> None:
        self.raw = raw


def make_raw(annotations: dict[str, str] | None = None, ip: str | None = "1.2.3.4", **spec: Any) -> dict[str, Any]:
    return {
        "metadata": {"name": "web", "namespace": "default", "annotations": annotations},
        "spec": spec,
        "status": {"loadBalancer": {"ingress": [{"ip": ip}] if ip else []}},
    }


def test_desired_state_defaults_when_annotations_missing() -> None:
    resource = ServiceResource(FakeObject(make_raw(type="LoadBalancer")))
    state = get_desired_state(resource)
    assert state == DNSSyncState(enabled="false", hostnames="", ipAddress="1.2.3.4")
    assert not state.is_active


def test_desired_state_from_load_balancer_service() -> None:
    annotations = {
        config.ANNOTATION_GOOGLE_CLOUD_DNS: "true",
        config.ANNOTATION_GOOGLE_CLOUD_DNS_HOSTNAMES: "a.b.com,c.b.com",
    }
    resource = ServiceResource(FakeObject(make_raw(annotations, type="LoadBalancer")))
    state = get_desired_state(resource)
    assert state == DNSSyncState(enabled="true", hostnames="a.b.com,c.b.com", ipAddress="1.2.3.4")
    assert state.is_active


def test_desired_state_ignores_ip_of_non_load_balancer_service() -> None:
    annotations = {config.ANNOTATION_GOOGLE_CLOUD_DNS: "true", config.ANNOTATION_GOOGLE_CLOUD_DNS_HOSTNAMES: "a.b.com"}
    resource = ServiceResource(FakeObject(make_raw(annotations, type="ClusterIP")))
    assert get_desired_state(resource).ipAddress == ""


def test_desired_state_without_assigned_address() -> None:
    resource = IngressResource(FakeObject(make_raw({config.ANNOTATION_GOOGLE_CLOUD_DNS: "true"}, ip=None)))
    assert get_desired_state(resource).ipAddress == ""


def test_desired_state_skips_hostname_only_load_balancer_entries() -> None:
    raw = make_raw()
    raw["status"]["loadBalancer"]["ingress"] = [{"hostname": "lb.example.com"}, {"ip": "5.6.7.8"}]
    assert get_desired_state(IngressResource(FakeObject(raw))).ipAddress == "5.6.7.8"


def test_current_state_missing_annotation_is_empty() -> None:
    resource = ServiceResource(FakeObject(make_raw()))
    assert get_current_state(resource) == DNSSyncState()


def test_current_state_parses_stored_snapshot() -> None:
    stored = json.dumps({"enabled": "true", "hostnames": "a.b.com", "ipAddress": "1.2.3.4"})
    resource = ServiceResource(FakeObject(make_raw({config.ANNOTATION_GOOGLE_CLOUD_DNS_STATE: stored})))
    assert get_current_state(resource) == DNSSyncState(enabled="true", hostnames="a.b.com", ipAddress="1.2.3.4")


def test_current_state_malformed_annotation_is_empty() -> None:
    for stored in ("{not json", "[1, 2]", "\"true\""):
        resource = ServiceResource(FakeObject(make_raw({config.ANNOTATION_GOOGLE_CLOUD_DNS_STATE: stored})))
        assert get_current_state(resource) == DNSSyncState()


def test_ingress_current_state_reads_state_annotation_not_enable_annotation() -> None:
    stored = DNSSyncState(enabled="true", hostnames="a.b.com", ipAddress="1.2.3.4").to_json()
    annotations = {
        config.ANNOTATION_GOOGLE_CLOUD_DNS: "true",
        config.ANNOTATION_GOOGLE_CLOUD_DNS_STATE: stored,
    }
    resource = IngressResource(FakeObject(make_raw(annotations)))
    assert get_current_state(resource).hostnames == "a.b.com"


def test_state_serializes_to_compact_json_keys() -> None:
    state = DNSSyncState(enabled="true", hostnames="a.b.com", ipAddress="1.2.3.4")
    assert state.to_json() == '{"enabled":"true","hostnames":"a.b.com","ipAddress":"1.2.3.4"}'
    assert DNSSyncState.from_json(state.to_json()) == state


def test_resource_kind_without_assigned_ips_cannot_be_wrapped() -> None:
    class GatewayResource(DNSResource):
        kind = "gateway"
        plural = "gateways"

    with pytest.raises(TypeError):
        GatewayResource(FakeObject(make_raw()))  # type: ignore[abstract]
