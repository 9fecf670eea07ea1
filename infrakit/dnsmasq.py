"""Kubernetes manifests for a dnsmasq DNS service."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

SERVICE_NAME = "dnsmasq"
SERVICE_COMMAND = "dnsmasq"
DNS_PORT = 53

_APP_SELECTOR = "service"
_HOSTNAME_LABEL = "kubernetes.io/hostname"
_CONFIG_MODE = 0o640


@dataclass
class DNSMasq:
    """The parts of a DNSMasq resource that shape its deployment."""

    name: str
    namespace: str
    container_image: str
    replicas: int = 1
    node_selector: Optional[dict[str, str]] = None

    def rbac_resource_name(self) -> str:
        """Name of the service account, role and role binding."""
        return f"{SERVICE_NAME}-{self.name}"


def _dnsmasq_command(test: bool = False) -> str:
    parts = [
        SERVICE_COMMAND,
        "--interface=*",
        "--conf-dir=/etc/dnsmasq.d",
        "--hostsdir=/etc/dnsmasq.d/hosts",
        "--keep-in-foreground",
        "--no-daemon",
        "--log-debug",
        "--bind-interfaces",
        "--listen-address=$(POD_IP)",
        f"--port {DNS_PORT}",
        "--log-facility=-",
        "--no-hosts",
        "--domain-needed",
        "--no-resolv",
        "--bogus-priv",
        "--log-queries",
    ]
    if test:
        parts.append("--test")
    return " ".join(parts)


def _probe(period: int, delay: int) -> dict[str, Any]:
    return {
        "timeoutSeconds": 5,
        "periodSeconds": period,
        "initialDelaySeconds": delay,
        "tcpSocket": {"port": DNS_PORT},
    }


def _env(config_hash: str) -> list[dict[str, Any]]:
    return [
        {"name": "CONFIG_HASH", "value": config_hash},
        {"name": "POD_IP", "valueFrom": {"fieldRef": {"fieldPath": "status.podIP"}}},
    ]


def _config_map_volume(volume_name: str, config_map: str) -> dict[str, Any]:
    return {
        "name": volume_name,
        "configMap": {"name": config_map, "defaultMode": _CONFIG_MODE},
    }


def get_volumes(name: str, config_maps: Iterable[str]) -> list[dict[str, Any]]:
    """The config volume followed by one volume per hosts config map."""
    volumes = [_config_map_volume("config", name)]
    volumes.extend(_config_map_volume(cm, cm) for cm in config_maps)
    return volumes


def get_volume_mounts(name: str, config_maps: Iterable[str]) -> list[dict[str, Any]]:
    """Mounts matching the volumes from get_volumes."""
    mounts = [
        {
            "name": "config",
            "mountPath": "/etc/dnsmasq.d/config.cfg",
            "subPath": name,
            "readOnly": True,
        }
    ]
    mounts.extend(
        {
            "name": cm,
            "mountPath": f"/etc/dnsmasq.d/hosts/{cm}",
            "subPath": cm,
            "readOnly": True,
        }
        for cm in config_maps
    )
    return mounts


def _anti_affinity() -> dict[str, Any]:
    return {
        "podAntiAffinity": {
            "preferredDuringSchedulingIgnoredDuringExecution": [
                {
                    "weight": 100,
                    "podAffinityTerm": {
                        "labelSelector": {
                            "matchExpressions": [
                                {
                                    "key": _APP_SELECTOR,
                                    "operator": "In",
                                    "values": [SERVICE_NAME],
                                }
                            ]
                        },
                        "topologyKey": _HOSTNAME_LABEL,
                    },
                }
            ]
        }
    }


def deployment(
    instance: DNSMasq,
    config_hash: str,
    labels: Mapping[str, str],
    annotations: Mapping[str, str],
    config_maps: Iterable[str],
) -> dict[str, Any]:
    """Build the Deployment manifest running dnsmasq for the instance."""
    config_maps = list(config_maps)

    def container(name: str, args: list[str]) -> dict[str, Any]:
        return {
            "name": name,
            "command": ["/bin/bash"],
            "args": args,
            "image": instance.container_image,
            "securityContext": {"runAsUser": 0},
            "env": _env(config_hash),
            "volumeMounts": get_volume_mounts(instance.name, config_maps),
        }

    init = container("init", ["-c", _dnsmasq_command(test=True)])
    main = container(f"{SERVICE_NAME}-dns", ["-c", _dnsmasq_command()])
    main["readinessProbe"] = _probe(period=5, delay=5)
    main["livenessProbe"] = _probe(period=3, delay=3)

    pod_spec: dict[str, Any] = {
        "serviceAccountName": instance.rbac_resource_name(),
        "volumes": get_volumes(instance.name, config_maps),
        "initContainers": [init],
        "containers": [main],
        "terminationGracePeriodSeconds": 10,
        "affinity": _anti_affinity(),
    }
    if instance.node_selector:
        pod_spec["nodeSelector"] = dict(instance.node_selector)

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {
            "name": f"{SERVICE_NAME}-{instance.name}",
            "namespace": instance.namespace,
        },
        "spec": {
            "selector": {"matchLabels": dict(labels)},
            "replicas": instance.replicas,
            "template": {
                "metadata": {"annotations": dict(annotations), "labels": dict(labels)},
                "spec": pod_spec,
            },
        },
    }