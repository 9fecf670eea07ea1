import pytest

from infrakit.dnsmasq import (
    DNS_PORT,
    DNSMasq,
    deployment,
    get_volume_mounts,
    get_volumes,
)

CONTAINER_IMAGE = "test-dnsmasq-container-image"


@pytest.fixture
def instance():
    return DNSMasq(name="abc", namespace="ns", container_image=CONTAINER_IMAGE)


@pytest.fixture
def depl(instance):
    return deployment(
        instance,
        "hash-1",
        {"service": "dnsmasq"},
        {"note": "x"},
        ["some-dnsdata", "abc-svc"],
    )


def test_rbac_resource_name(instance):
    assert instance.rbac_resource_name() == "dnsmasq-abc"


def test_deployment_metadata(depl):
    assert depl["metadata"] == {"name": "dnsmasq-abc", "namespace": "ns"}


def test_deployment_shape(depl):
    spec = depl["spec"]
    pod = spec["template"]["spec"]
    assert spec["replicas"] == 1
    assert len(pod["volumes"]) == 3
    assert len(pod["containers"]) == 1
    assert len(pod["initContainers"]) == 1
    assert spec["selector"]["matchLabels"] == {"service": "dnsmasq"}
    assert spec["template"]["metadata"]["annotations"] == {"note": "x"}
    assert pod["serviceAccountName"] == "dnsmasq-abc"
    assert pod["terminationGracePeriodSeconds"] == 10


def test_container_probes_and_image(depl):
    container = depl["spec"]["template"]["spec"]["containers"][0]
    assert container["name"] == "dnsmasq-dns"
    assert len(container["volumeMounts"]) == 3
    assert container["image"] == CONTAINER_IMAGE
    assert container["livenessProbe"]["tcpSocket"]["port"] == 53
    assert container["readinessProbe"]["tcpSocket"]["port"] == 53
    assert container["livenessProbe"]["periodSeconds"] == 3
    assert container["readinessProbe"]["initialDelaySeconds"] == 5


def test_config_hash_env(depl):
    container = depl["spec"]["template"]["spec"]["containers"][0]
    env = {e["name"]: e for e in container["env"]}
    assert env["CONFIG_HASH"]["value"] == "hash-1"
    assert env["POD_IP"]["valueFrom"]["fieldRef"]["fieldPath"] == "status.podIP"


def test_command_lines(depl):
    pod = depl["spec"]["template"]["spec"]
    main_args = pod["containers"][0]["args"]
    init_args = pod["initContainers"][0]["args"]
    assert main_args[0] == "-c"
    assert main_args[1].startswith("dnsmasq --interface=* --conf-dir=/etc/dnsmasq.d")
    assert "--listen-address=$(POD_IP) --port 53" in main_args[1]
    assert main_args[1].endswith("--log-queries")
    assert init_args[1] == main_args[1] + " --test"


def test_config_map_volumes_present(depl):
    pod = depl["spec"]["template"]["spec"]
    assert "some-dnsdata" in [v["name"] for v in pod["volumes"]]
    mounts = pod["containers"][0]["volumeMounts"]
    assert "some-dnsdata" in [m["name"] for m in mounts]


def test_removed_config_map_not_mounted(instance):
    depl = deployment(instance, "h", {}, {}, [])
    pod = depl["spec"]["template"]["spec"]
    assert [v["name"] for v in pod["volumes"]] == ["config"]
    assert [m["name"] for m in pod["containers"][0]["volumeMounts"]] == ["config"]


def test_config_hash_changes_env(instance):
    first = deployment(instance, "h1", {}, {}, [])
    second = deployment(instance, "h2", {}, {}, [])
    def value(d):
        env = d["spec"]["template"]["spec"]["containers"][0]["env"]
        return next(e["value"] for e in env if e["name"] == "CONFIG_HASH")
    assert value(first) == "h1"
    assert value(second) == "h2"


def test_node_selector_applied():
    inst = DNSMasq("a", "ns", "img", replicas=2, node_selector={"role": "dns"})
    depl = deployment(inst, "h", {}, {}, [])
    assert depl["spec"]["template"]["spec"]["nodeSelector"] == {"role": "dns"}
    assert depl["spec"]["replicas"] == 2


def test_empty_node_selector_omitted():
    inst = DNSMasq("a", "ns", "img", node_selector={})
    depl = deployment(inst, "h", {}, {}, [])
    assert "nodeSelector" not in depl["spec"]["template"]["spec"]


def test_anti_affinity(depl):
    affinity = depl["spec"]["template"]["spec"]["affinity"]
    term = affinity["podAntiAffinity"]["preferredDuringSchedulingIgnoredDuringExecution"][0]
    assert term["podAffinityTerm"]["topologyKey"] == "kubernetes.io/hostname"
    expr = term["podAffinityTerm"]["labelSelector"]["matchExpressions"][0]
    assert expr == {"key": "service", "operator": "In", "values": ["dnsmasq"]}


def test_get_volumes():
    volumes = get_volumes("abc", ["cm1"])
    assert volumes == [
        {"name": "config", "configMap": {"name": "abc", "defaultMode": 0o640}},
        {"name": "cm1", "configMap": {"name": "cm1", "defaultMode": 0o640}},
    ]


def test_get_volume_mounts():
    mounts = get_volume_mounts("abc", ["cm1"])
    assert mounts == [
        {
            "name": "config",
            "mountPath": "/etc/dnsmasq.d/config.cfg",
            "subPath": "abc",
            "readOnly": True,
        },
        {
            "name": "cm1",
            "mountPath": "/etc/dnsmasq.d/hosts/cm1",
            "subPath": "cm1",
            "readOnly": True,
        },
    ]


def test_dns_port():
    depl = deployment(DNSMasq("a", "ns", "img"), "h", {}, {}, [])
    container = depl["spec"]["template"]["spec"]["containers"][0]
    assert container["livenessProbe"]["tcpSocket"]["port"] == DNS_PORT == 53