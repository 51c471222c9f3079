from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, Sequence

from ldap3 import BASE, LEVEL, SUBTREE

from ..config import DirectoryConfig
from .models import SearchRequest

_SCOPES = {
    "base": BASE,
    "one": LEVEL,
    "sub": SUBTREE,
}


# characters RFC 4515 requires to be written as \XX inside a filter value
_FILTER_ESCAPES = str.maketrans({c: f"\\{ord(c):02x}" for c in "\\*()\x00"})


def escape_ldap_filter_value(value: str) -> str:
    """Make a user supplied string safe to embed in `(attr=value)`."""
    return value.translate(_FILTER_ESCAPES)


def domain_to_base_dn(domain: str) -> str:
    """`corp.example.com` -> `DC=corp,DC=example,DC=com`; single labels give ``""``."""
    labels = [label for label in (domain or "").strip().split(".") if label]
    if len(labels) < 2:
        return ""
    return ",".join("DC=" + label for label in labels)


def ldap3_scope(scope: str) -> str:
    return _SCOPES[scope]


def build_search_request(
    cfg: DirectoryConfig,
    search_filter: str = "",
    base: Optional[str] = None,
    override: Optional[Mapping[str, Any]] = None,
    attributes: Optional[Sequence[str]] = None,
) -> SearchRequest:
    """Merge per-call values over the configured search options.

    Precedence:
    - filter: override["filter"], then `search_filter`, then the configured filter
    - base: `base` when it is a string, else the configured base
    - attributes: override["attributes"], then `attributes`, then configured
    - scope and size limit always come from the configuration
    """
    opts = cfg.search_options
    override = override or {}

    flt = override.get("filter") or search_filter or opts.filter
    if not flt:
        raise ValueError("No search filter given and none configured.")

    attrs = override.get("attributes") or attributes or opts.attributes

    return SearchRequest(
        base=base if isinstance(base, str) else cfg.base,
        filter=flt,
        scope=opts.scope,
        attributes=tuple(attrs),
        size_limit=opts.size_limit,
    )
