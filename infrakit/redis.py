"""Kubernetes manifests for a redis service with sentinel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from infrakit.tls import TLSSettings

REDIS_PORT = 6379
SENTINEL_PORT = 26379
REDIS_CERT_PREFIX = "redis"

_GROUP = "redis"
_APP_SELECTOR = "service"
_OWNER_SELECTOR = "owner"
_SCRIPTS_DIR = "/var/lib/operator-scripts"
_SCRIPTS_MODE = 0o755
_SCRIPTS = (
    "start_redis_replication.sh",
    "start_sentinel.sh",
    "redis_probe.sh",
    "check_redis_endpoints.sh",
    "common.sh",
)


@dataclass
class Redis:
    """The parts of a Redis resource that shape its manifests."""

    name: str
    namespace: str
    container_image: str
    replicas: int = 1
    tls: TLSSettings = field(default_factory=TLSSettings)

    def rbac_resource_name(self) -> str:
        """Name of the service account, role and role binding."""
        return f"{_GROUP}-{self.name}"


def _labels(r: Redis, custom: Mapping[str, str]) -> dict[str, str]:
    labels = {
        f"{_GROUP}.openstack.org/name": r.name,
        f"{_GROUP}.openstack.org/namespace": r.namespace,
    }
    labels.update(custom)
    return labels


def _owner_selector(r: Redis) -> dict[str, str]:
    return {_APP_SELECTOR: "redis", _OWNER_SELECTOR: r.name}


def _tcp_probe(port: int, period: int, delay: int) -> dict[str, Any]:
    return {
        "timeoutSeconds": 5,
        "periodSeconds": period,
        "initialDelaySeconds": delay,
        "tcpSocket": {"port": port},
    }


def _exec_probe(kind: str) -> dict[str, Any]:
    return {"exec": {"command": [f"{_SCRIPTS_DIR}/redis_probe.sh", kind]}}


def _service(
    r: Redis,
    name: str,
    selector: Mapping[str, str],
    ports: list[dict[str, Any]],
    **extra: Any,
) -> dict[str, Any]:
    spec: dict[str, Any] = {"selector": dict(selector), "ports": ports}
    spec.update(extra)
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {
            "name": name,
            "namespace": r.namespace,
            "labels": _labels(r, _owner_selector(r)),
        },
        "spec": spec,
    }


def deployment(r: Redis) -> dict[str, Any]:
    """A plain Deployment running a single redis container."""
    match = {"app": "redis", "cr": f"redis-{r.name}", "owner": "infra-operator"}
    container = {
        "image": r.container_image,
        "name": "redis",
        "ports": [{"containerPort": REDIS_PORT, "name": "redis"}],
        "readinessProbe": _tcp_probe(REDIS_PORT, period=5, delay=5),
        "livenessProbe": _tcp_probe(REDIS_PORT, period=3, delay=3),
    }
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": r.name, "namespace": r.namespace},
        "spec": {
            "replicas": r.replicas,
            "selector": {"matchLabels": dict(match)},
            "template": {
                "metadata": {"labels": _labels(r, match)},
                "spec": {
                    "serviceAccountName": r.rbac_resource_name(),
                    "containers": [container],
                },
            },
        },
    }


def service(instance: Redis) -> dict[str, Any]:
    """A Service routing to the current redis master."""
    selector = _owner_selector(instance)
    selector["redis/master"] = "true"
    return _service(
        instance,
        instance.name,
        selector,
        [{"name": "redis", "port": REDIS_PORT, "protocol": "TCP"}],
    )


def headless_service(instance: Redis) -> dict[str, Any]:
    """A headless Service giving every redis pod a DNS entry."""
    return _service(
        instance,
        f"{instance.name}-redis",
        _owner_selector(instance),
        [
            {"name": "redis", "protocol": "TCP", "port": REDIS_PORT},
            {"name": "sentinel", "protocol": "TCP", "port": SENTINEL_PORT},
        ],
        clusterIP="None",
        publishNotReadyAddresses=True,
    )


def _config_map(r: Redis, name: str, items: list[dict[str, str]], **extra: Any) -> dict[str, Any]:
    source: dict[str, Any] = {"name": name, "items": items}
    source.update(extra)
    return {"configMap": source}


def get_volumes(r: Redis) -> list[dict[str, Any]]:
    """Config, script and generated-data volumes, plus TLS volumes if enabled."""
    config_data = f"{r.name}-config-data"
    config_files = [
        {"key": "sentinel.conf.in", "path": "var/lib/redis/sentinel.conf.in"},
        {"key": "redis.conf.in", "path": "var/lib/redis/redis.conf.in"},
    ]
    if r.tls.enabled():
        config_files += [
            {"key": "redis-tls.conf.in", "path": "var/lib/redis/redis-tls.conf.in"},
            {"key": "sentinel-tls.conf.in", "path": "var/lib/redis/sentinel-tls.conf.in"},
        ]

    vols: list[dict[str, Any]] = [
        {
            "name": "kolla-config",
            **_config_map(r, config_data, [{"key": "config.json", "path": "config.json"}]),
        },
        {
            "name": "kolla-config-sentinel",
            **_config_map(
                r, config_data, [{"key": "config-sentinel.json", "path": "config.json"}]
            ),
        },
        {"name": "generated-config-data", "emptyDir": {}},
        {"name": "config-data", **_config_map(r, config_data, config_files)},
        {
            "name": "operator-scripts",
            **_config_map(
                r,
                f"{r.name}-scripts",
                [{"key": script, "path": script} for script in _SCRIPTS],
                defaultMode=_SCRIPTS_MODE,
            ),
        },
    ]
    vols.extend(r.tls.volumes(REDIS_CERT_PREFIX))
    return vols


def get_tls_volume_mounts(r: Redis) -> list[dict[str, Any]]:
    """TLS certificate mounts, empty when TLS is disabled."""
    return r.tls.volume_mounts(REDIS_CERT_PREFIX)


def _common_mounts(kolla_volume: str) -> list[dict[str, Any]]:
    return [
        {"mountPath": "/var/lib/config-data/default", "readOnly": True, "name": "config-data"},
        {"mountPath": "/var/lib/config-data/generated", "name": "generated-config-data"},
        {"mountPath": _SCRIPTS_DIR, "readOnly": True, "name": "operator-scripts"},
        {"mountPath": "/var/lib/kolla/config_files", "readOnly": True, "name": kolla_volume},
    ]


def get_redis_volume_mounts(r: Redis) -> list[dict[str, Any]]:
    """Mounts for the redis container."""
    return _common_mounts("kolla-config") + get_tls_volume_mounts(r)


def get_sentinel_volume_mounts(r: Redis) -> list[dict[str, Any]]:
    """Mounts for the sentinel container."""
    return _common_mounts("kolla-config-sentinel") + get_tls_volume_mounts(r)


def stateful_set(r: Redis) -> dict[str, Any]:
    """The StatefulSet running redis with a sentinel side container."""
    labels = _labels(r, _owner_selector(r))
    name = f"{r.name}-redis"
    common_env = [
        {"name": "KOLLA_CONFIG_STRATEGY", "value": "COPY_ALWAYS"},
        # Headless services only publish names under the cluster domain.
        {"name": "SVC_FQDN", "value": f"{name}.{r.namespace}.svc.cluster.local"},
    ]
    redis_container = {
        "image": r.container_image,
        "command": [f"{_SCRIPTS_DIR}/start_redis_replication.sh"],
        "name": "redis",
        "env": list(common_env),
        "volumeMounts": get_redis_volume_mounts(r),
        "ports": [{"containerPort": REDIS_PORT, "name": "redis"}],
        "livenessProbe": _exec_probe("liveness"),
        "readinessProbe": _exec_probe("readiness"),
    }
    sentinel_container = {
        "image": r.container_image,
        "command": [f"{_SCRIPTS_DIR}/start_sentinel.sh"],
        "name": "sentinel",
        "env": common_env + [
            {"name": "SENTINEL_QUORUM", "value": str(r.replicas // 2 + 1)}
        ],
        "volumeMounts": get_sentinel_volume_mounts(r),
        "ports": [{"containerPort": SENTINEL_PORT, "name": "sentinel"}],
        "readinessProbe": _tcp_probe(SENTINEL_PORT, period=5, delay=5),
        "livenessProbe": _tcp_probe(SENTINEL_PORT, period=3, delay=3),
    }
    return {
        "apiVersion": "apps/v1",
        "kind": "StatefulSet",
        "metadata": {"name": name, "namespace": r.namespace},
        "spec": {
            "serviceName": name,
            "replicas": r.replicas,
            "selector": {"matchLabels": dict(labels)},
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {
                    "serviceAccountName": r.rbac_resource_name(),
                    "containers": [redis_container, sentinel_container],
                    "volumes": get_volumes(r),
                },
            },
        },
    }