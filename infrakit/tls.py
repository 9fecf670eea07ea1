"""TLS certificates mounted into service pods."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

CA_BUNDLE_VOLUME = "combined-ca-bundle"
CA_BUNDLE_MOUNT_PATH = "/etc/pki/ca-trust/extracted/pem/tls-ca-bundle.pem"
CA_BUNDLE_ITEM = "tls-ca-bundle.pem"

CERT_DIR = "/var/lib/config-data/tls/certs"
KEY_DIR = "/var/lib/config-data/tls/private"
CERT_ITEM = "tls.crt"
KEY_ITEM = "tls.key"

_SERVICE_MODE = 0o440
_CA_MODE = 0o444


def _certs_volume_name(prefix: str) -> str:
    return f"{prefix}-tls-certs"


def _secret_source(name: Optional[str], mode: int) -> dict[str, Any]:
    return dict(secretName=name, defaultMode=mode)


@dataclass
class TLSSettings:
    """Certificate store name and an optional CA bundle store name."""

    secret_name: Optional[str] = None
    ca_bundle_secret_name: str = ""

    def enabled(self) -> bool:
        """True when a service certificate store is configured."""
        return bool(self.secret_name)

    def volumes(self, prefix: str) -> list[dict[str, Any]]:
        """Volumes for the service certificate and, if set, the CA bundle."""
        if not self.enabled():
            return []
        vols: list[dict[str, Any]] = [
            {
                "name": _certs_volume_name(prefix),
                "secret": _secret_source(self.secret_name, _SERVICE_MODE),
            }
        ]
        if self.ca_bundle_secret_name:
            vols.append(
                {
                    "name": CA_BUNDLE_VOLUME,
                    "secret": _secret_source(self.ca_bundle_secret_name, _CA_MODE),
                }
            )
        return vols

    def volume_mounts(self, prefix: str) -> list[dict[str, Any]]:
        """Mounts matching the volumes from volumes()."""
        if not self.enabled():
            return []
        certs = _certs_volume_name(prefix)
        mounts: list[dict[str, Any]] = [
            {
                "name": certs,
                "mountPath": f"{CERT_DIR}/{prefix}.crt",
                "subPath": CERT_ITEM,
                "readOnly": True,
            },
            {
                "name": certs,
                "mountPath": f"{KEY_DIR}/{prefix}.key",
                "subPath": KEY_ITEM,
                "readOnly": True,
            },
        ]
        if self.ca_bundle_secret_name:
            mounts.append(
                {
                    "name": CA_BUNDLE_VOLUME,
                    "mountPath": CA_BUNDLE_MOUNT_PATH,
                    "subPath": CA_BUNDLE_ITEM,
                    "readOnly": True,
                }
            )
        return mounts