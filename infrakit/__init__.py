"""Manifest builders for dnsmasq, memcached and redis, TLS mounts, and IP address assignment."""

__version__ = "0.1.0"
__all__ = ["ipam", "dnsmasq", "tls", "memcached", "redis"]