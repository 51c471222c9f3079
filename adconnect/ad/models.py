from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, List, Optional


@dataclass
class RawAttribute:
    type: str
    raw_values: List[bytes] = field(default_factory=list)


@dataclass
class RawEntry:
    """One search result as returned by the directory.

    `object` holds decoded attribute values (scalar or list, whatever the
    transport produced), `attributes` keeps the raw bytes, which is the only
    place binary values such as objectGUID survive intact.
    """

    dn: str
    object: dict = field(default_factory=dict)
    attributes: List[RawAttribute] = field(default_factory=list)

    @classmethod
    def from_ldap3(cls, item: dict) -> "RawEntry":
        """Build from an ldap3 `conn.response` item of type searchResEntry."""
        dn = str(item.get("dn") or "")
        obj = dict(item.get("attributes") or {})
        raw = item.get("raw_attributes") or {}
        attrs = []
        for name, values in raw.items():
            if isinstance(values, (bytes, bytearray)):
                values = [values]
            attrs.append(RawAttribute(type=str(name), raw_values=[bytes(v) for v in (values or [])]))
        return cls(dn=dn, object=obj, attributes=attrs)


@dataclass(frozen=True)
class SearchRequest:
    base: str
    filter: str
    scope: str = "sub"
    attributes: tuple = ("*",)
    size_limit: int = 0


@dataclass
class UserRecord:
    groups: List[str]
    phone: str
    name: str
    mail: str
    guid: str
    distinguished_name: str

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class GroupRecord:
    name: str
    distinguished_name: str
    guid: str
    description: str
    created_at: Optional[datetime]
    changed_at: Optional[datetime]

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class OperationResult:
    """Uniform outcome of a facade call.

    On failure `reason` is a friendly message (only for classified bind
    failures and missing records) and `cause` is the underlying error.
    """

    success: bool
    payload: Any = None
    reason: Optional[str] = None
    cause: Any = None

    @classmethod
    def ok(cls, payload: Any) -> "OperationResult":
        return cls(success=True, payload=payload)

    @classmethod
    def fail(cls, reason: Optional[str] = None, cause: Any = None) -> "OperationResult":
        return cls(success=False, reason=reason, cause=cause)
