from __future__ import annotations

from functools import lru_cache
from typing import Callable, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from .ad.utils import domain_to_base_dn
from .config import DirectoryConfig


class EnvSettings(BaseSettings):
    url: str = Field("", alias="AD_URL")
    base: str = Field("", alias="AD_BASE")
    suffix: str = Field("", alias="AD_SUFFIX")
    domain: str = Field("", alias="AD_DOMAIN")

    search_scope: str = Field("sub", alias="AD_SEARCH_SCOPE")
    search_filter: str = Field("", alias="AD_SEARCH_FILTER")
    size_limit: int = Field(0, alias="AD_SIZE_LIMIT")

    idle_timeout: float = Field(3.0, alias="AD_IDLE_TIMEOUT")
    connect_timeout: Optional[float] = Field(None, alias="AD_CONNECT_TIMEOUT")

    tls_validate: bool = Field(True, alias="AD_TLS_VALIDATE")
    ca_pem: str = Field("", alias="AD_CA_PEM")
    ca_file: str = Field("", alias="AD_CA_FILE")
    starttls: bool = Field(False, alias="AD_STARTTLS")

    log_level: str = Field("INFO", alias="AD_LOG_LEVEL")
    log_file: str = Field("", alias="AD_LOG_FILE")

    class Config:
        populate_by_name = True

    def to_config(self, warn: Callable[[str], None] | None = None) -> DirectoryConfig:
        base = self.base
        if not base and not self.suffix:
            base = domain_to_base_dn(self.domain)

        return DirectoryConfig.build(
            {
                "url": self.url,
                "base": base,
                "suffix": self.suffix,
                "search_options": {
                    "scope": self.search_scope,
                    "filter": self.search_filter,
                    "size_limit": self.size_limit,
                },
                "idle_timeout": self.idle_timeout,
                "connect_timeout": self.connect_timeout,
                "tls": {
                    "validate_cert": self.tls_validate,
                    "ca_pem": self.ca_pem,
                    "ca_certs_file": self.ca_file,
                    "start_tls": self.starttls,
                },
            },
            warn=warn,
        )


@lru_cache(maxsize=1)
def get_env() -> EnvSettings:
    return EnvSettings()
