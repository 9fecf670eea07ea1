"""Kubernetes manifests for a memcached service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from infrakit.tls import TLSSettings

MEMCACHED_PORT = 11211
MEMCACHED_CERT_PREFIX = "memcached"

_GROUP = "memcached"


@dataclass
class Memcached:
    """The parts of a Memcached resource that shape its manifests."""

    name: str
    namespace: str
    container_image: str
    replicas: int = 1
    tls: TLSSettings = field(default_factory=TLSSettings)

    def rbac_resource_name(self) -> str:
        """Name of the service account, role and role binding."""
        return f"{_GROUP}-{self.name}"


def _labels(m: Memcached, custom: Mapping[str, str]) -> dict[str, str]:
    labels = {
        f"{_GROUP}.openstack.org/name": m.name,
        f"{_GROUP}.openstack.org/namespace": m.namespace,
    }
    labels.update(custom)
    return labels


def _match_labels(m: Memcached) -> dict[str, str]:
    return {"app": m.name, "cr": m.name, "owner": "infra-operator"}


def _probe(period: int, delay: int) -> dict[str, Any]:
    return {
        "timeoutSeconds": 5,
        "periodSeconds": period,
        "initialDelaySeconds": delay,
        "tcpSocket": {"port": MEMCACHED_PORT},
    }


def headless_service(m: Memcached) -> dict[str, Any]:
    """A headless Service exposing every memcached replica."""
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {
            "name": m.name,
            "namespace": m.namespace,
            "labels": _labels(m, _match_labels(m)),
        },
        "spec": {
            "selector": {"app": m.name},
            "ports": [
                {"name": "memcached", "port": MEMCACHED_PORT, "protocol": "TCP"}
            ],
            "clusterIP": "None",
        },
    }


def _config_map_volume(m: Memcached, volume: str, key: str, path: str) -> dict[str, Any]:
    return {
        "name": volume,
        "configMap": {
            "name": f"{m.name}-config-data",
            "items": [{"key": key, "path": path}],
        },
    }


def get_volumes(m: Memcached) -> list[dict[str, Any]]:
    """Config volumes, followed by TLS volumes when TLS is enabled."""
    vols = [
        _config_map_volume(m, "kolla-config", "config.json", "config.json"),
        _config_map_volume(m, "config-data", "memcached", "etc/sysconfig/memcached"),
    ]
    vols.extend(m.tls.volumes(MEMCACHED_CERT_PREFIX))
    return vols


def get_volume_mounts(m: Memcached) -> list[dict[str, Any]]:
    """Mounts matching the volumes from get_volumes."""
    mounts: list[dict[str, Any]] = [
        {
            "mountPath": "/var/lib/kolla/config_files/src",
            "readOnly": True,
            "name": "config-data",
        },
        {
            "mountPath": "/var/lib/kolla/config_files",
            "readOnly": True,
            "name": "kolla-config",
        },
    ]
    mounts.extend(m.tls.volume_mounts(MEMCACHED_CERT_PREFIX))
    return mounts


def stateful_set(m: Memcached) -> dict[str, Any]:
    """The StatefulSet running memcached for the resource."""
    match = _match_labels(m)
    container = {
        "image": m.container_image,
        "name": "memcached",
        "command": ["/usr/bin/dumb-init", "--", "/usr/local/bin/kolla_start"],
        "securityContext": {"runAsUser": 0},
        "env": [{"name": "KOLLA_CONFIG_STRATEGY", "value": "COPY_ALWAYS"}],
        "volumeMounts": get_volume_mounts(m),
        "ports": [{"containerPort": MEMCACHED_PORT, "name": "memcached"}],
        "readinessProbe": _probe(period=5, delay=5),
        "livenessProbe": _probe(period=3, delay=3),
    }
    return {
        "apiVersion": "apps/v1",
        "kind": "StatefulSet",
        "metadata": {"name": m.name, "namespace": m.namespace},
        "spec": {
            "serviceName": m.name,
            "replicas": m.replicas,
            "selector": {"matchLabels": dict(match)},
            "template": {
                "metadata": {"labels": _labels(m, match)},
                "spec": {
                    "serviceAccountName": m.rbac_resource_name(),
                    "containers": [container],
                    "volumes": get_volumes(m),
                },
            },
        },
    }