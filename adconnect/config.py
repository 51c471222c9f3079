from __future__ import annotations

import hashlib
import os
import ssl
import tempfile
from typing import Any, Callable, Literal, Mapping, Optional

from ldap3 import Tls
from pydantic import BaseModel, ConfigDict, Field, field_validator

SearchScope = Literal["base", "one", "sub"]


class SearchOptions(BaseModel):
    """Default search parameters applied to every call."""

    model_config = ConfigDict(frozen=True)

    scope: SearchScope = Field(default="sub")
    filter: str = Field(default="")
    size_limit: int = Field(default=0, ge=0)
    attributes: tuple[str, ...] = Field(default=("*",))

    @field_validator("filter")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()


class TlsOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    validate_cert: bool = Field(default=True)
    ca_pem: str = Field(default="")
    ca_certs_file: str = Field(default="")
    start_tls: bool = Field(default=False)

    @staticmethod
    def _normalize_pem(pem: str) -> str:
        """Normalize PEM text (strip outer whitespace and normalize line endings)."""
        data = (pem or "").strip()
        return data.replace("\r\n", "\n").replace("\r", "\n")

    @classmethod
    def _ensure_ca_file(cls, pem: str) -> str:
        """Materialize CA PEM into a stable file path.

        ldap3.Tls takes ca_certs_file across all versions; the file name carries
        a content hash so concurrent processes reuse it.
        """
        data = cls._normalize_pem(pem)
        if not data:
            return ""

        if "-----BEGIN CERTIFICATE-----" not in data or "-----END CERTIFICATE-----" not in data:
            raise ValueError("CA PEM does not look like a certificate (BEGIN/END CERTIFICATE block expected)")

        h = hashlib.sha256(data.encode("utf-8")).hexdigest()[:16]
        path = os.path.join(tempfile.gettempdir(), f"adconnect_ca_{h}.pem")

        if os.path.exists(path):
            with open(path, "r", encoding="utf-8") as f:
                if f.read().strip() == data:
                    return path

        with open(path, "w", encoding="utf-8") as f:
            f.write(data + "\n")
        os.chmod(path, 0o600)
        return path

    def build_tls(self) -> Tls:
        tls_kwargs: dict[str, Any] = {
            "validate": ssl.CERT_REQUIRED if self.validate_cert else ssl.CERT_NONE,
        }
        # Custom CA only matters when verification is enabled.
        if self.validate_cert:
            ca_file = self.ca_certs_file or self._ensure_ca_file(self.ca_pem)
            if ca_file:
                tls_kwargs["ca_certs_file"] = ca_file
        return Tls(**tls_kwargs)


class DirectoryConfig(BaseModel):
    """Connection settings shared by every call of one client."""

    model_config = ConfigDict(frozen=True)

    url: str
    base: str = Field(default="")
    search_options: SearchOptions = Field(default_factory=SearchOptions)
    idle_timeout: float = Field(default=3.0, gt=0)
    connect_timeout: Optional[float] = Field(default=None, gt=0)
    tls: TlsOptions = Field(default_factory=TlsOptions)

    @field_validator("url")
    @classmethod
    def _validate_url(cls, v: str) -> str:
        s = (v or "").strip()
        if not s:
            raise ValueError("Directory URL must not be empty.")
        if "://" in s and not s.lower().startswith(("ldap://", "ldaps://")):
            raise ValueError("Directory URL must use the ldap:// or ldaps:// scheme.")
        return s

    @field_validator("base")
    @classmethod
    def _strip(cls, v: str) -> str:
        return (v or "").strip()

    @classmethod
    def build(cls, data: Mapping[str, Any], warn: Callable[[str], None] | None = None) -> "DirectoryConfig":
        """Validate raw settings, folding the legacy `suffix` field into `base`."""
        return cls.model_validate(normalize_legacy_fields(data, warn))


def normalize_legacy_fields(data: Mapping[str, Any], warn: Callable[[str], None] | None = None) -> dict:
    """`suffix` was renamed to `base`; adopt it only when `base` is blank."""
    payload = dict(data)
    suffix = payload.pop("suffix", None) or ""
    if len(suffix) > 1 and not (payload.get("base") or ""):
        if warn:
            warn("Deprecation warning: 'suffix' was renamed to 'base', the 'suffix' field will be removed.")
        payload["base"] = suffix
    return payload
