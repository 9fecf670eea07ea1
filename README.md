# infrakit

Plain-Python builders for the workload manifests of a few infrastructure
services, and a small IP address manager.

The package has no runtime dependencies. Each builder takes a dataclass that
describes a service and returns plain dictionaries shaped like the Kubernetes
objects that would run it: Deployments, StatefulSets, Services, volumes and
volume mounts. The results can be serialised to JSON or YAML by the caller.

## Modules

### `infrakit.ipam`

`AllocationRange`, `Subnet`, `Reservation`, `IPAddress`, `AssignIPDetails`
and the `IPAMError` exception.

`AssignIPDetails.assign_ip()` returns an `IPAddress` for one IP set on one
network:

- If `fixed_ip` is given, that address is returned, unless it is listed in
  the subnet's `exclude_addresses` or is already held on that network by a
  `Reservation` of a different IP set; in those cases `IPAMError` is raised.
- Otherwise the subnet's allocation ranges are walked in order, and the first
  address is returned that does not end in a zero byte (IPv4: last octet 0;
  IPv6: last two bytes 0), is not excluded, and is not reserved by another IP
  set. Addresses reserved by the same IP set are handed out again.
- If a range bound cannot be parsed, or no address is free, `IPAMError` is
  raised.

### `infrakit.dnsmasq`

`DNSMasq` describes an instance (name, namespace, image, replicas, optional
node selector). `deployment(instance, config_hash, labels, annotations,
config_maps)` builds a Deployment with an `init` container that checks the
configuration with `--test` and a `dnsmasq-dns` container serving on port 53.
`get_volumes()` and `get_volume_mounts()` mount the instance's config map and
one hosts config map per name in `config_maps`.

### `infrakit.tls`

`TLSSettings` holds a certificate store name and an optional CA bundle store
name. `enabled()` is true when a certificate store is set; `volumes(prefix)`
and `volume_mounts(prefix)` produce the certificate, key and CA bundle
volumes and mounts, or empty lists when TLS is off.

### `infrakit.memcached`

`Memcached` plus `headless_service()`, `stateful_set()`, `get_volumes()` and
`get_volume_mounts()`. Memcached listens on port 11211.

### `infrakit.redis`

`Redis` plus `deployment()`, `service()`, `headless_service()`,
`stateful_set()`, `get_volumes()`, `get_tls_volume_mounts()`,
`get_redis_volume_mounts()` and `get_sentinel_volume_mounts()`. The
StatefulSet runs a redis container (port 6379) and a sentinel container
(port 26379) whose `SENTINEL_QUORUM` is `replicas // 2 + 1`.

## Example

```python
from infrakit.ipam import AllocationRange, AssignIPDetails, Subnet

subnet = Subnet(
    name="subnet1",
    cidr="172.17.0.0/24",
    allocation_ranges=[AllocationRange("172.17.0.100", "172.17.0.200")],
    exclude_addresses=["172.17.0.201"],
)
details = AssignIPDetails(ipset="my-ipset", net_name="net-1", subnet=subnet)
print(details.assign_ip().address)  # 172.17.0.100
```

## What it does not do

infrakit only builds data. It does not connect to a cluster, apply or watch
objects, run controllers or admission checks, persist reservations, or
provide a command-line program. Storing reservations and applying the
manifests are left to the caller.

## Testing

The tests use pytest, available through the `test` extra.