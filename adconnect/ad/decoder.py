"""Pure helpers turning raw directory entries into application values.

Every function accepts either a `RawEntry` or a plain mapping with the same
keys (`dn`, `object`, `attributes`), so records can be processed offline.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from .errors import DecodeError
from .models import GroupRecord, UserRecord

UPN = "userPrincipalName"
DN = "distinguishedName"
SAM = "sAMAccountName"

# objectGUID wire layout: first three groups little-endian, last two big-endian
_GUID_FORMAT = (
    (3, 2, 1, 0),
    (5, 4),
    (7, 6),
    (8, 9),
    (10, 11, 12, 13, 14, 15),
)
_GUID_LENGTH = 16


def _get(entry: Any, name: str) -> Any:
    if isinstance(entry, Mapping):
        return entry.get(name)
    return getattr(entry, name, None)


def _scalar(value: Any) -> str:
    """First value of a possibly multi-valued attribute, as text."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None
    if value is None:
        return ""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    return str(value)


def _raw_values(entry: Any, attr_type: str) -> list | None:
    attributes = _get(entry, "attributes")
    if isinstance(attributes, (str, bytes)) or not isinstance(attributes, Sequence):
        raise DecodeError("Invalid entry, attributes must be a sequence")

    for attribute in attributes:
        if _get(attribute, "type") == attr_type:
            return list(_get(attribute, "raw_values") or [])
    return None


def _object(entry: Any) -> Mapping:
    obj = _get(entry, "object")
    if not isinstance(obj, Mapping):
        raise DecodeError("Invalid entry, entry.object must be a mapping")
    return obj


def resolve_guid(entry: Any) -> str:
    """Format the binary objectGUID as a hyphenated hex string."""
    values = _raw_values(entry, "objectGUID")
    if not values:
        raise DecodeError("Entry has no objectGUID attribute")

    binary = values[0]
    if not isinstance(binary, (bytes, bytearray)) or len(binary) != _GUID_LENGTH:
        raise DecodeError(f"objectGUID must be {_GUID_LENGTH} bytes")

    return "-".join("".join(f"{binary[i]:02x}" for i in part) for part in _GUID_FORMAT)


def resolve_groups(entry: Any) -> list[str]:
    """Group names from memberOf.

    A single membership may arrive as a plain string: all CN= components of
    it are taken. For a list only the leading CN of each DN is taken.
    """
    member_of = _object(entry).get("memberOf")

    if member_of is None:
        return []
    if isinstance(member_of, str):
        return [item.split("CN=")[1] for item in member_of.split(",") if "CN=" in item]
    if isinstance(member_of, (list, tuple)):
        return [str(group).split(",")[0].replace("CN=", "", 1) for group in member_of]
    return []


def create_user_obj(entry: Any) -> UserRecord:
    if entry is None or isinstance(entry, (str, bytes)):
        raise DecodeError("Entry must be a structured record")

    obj = _object(entry)
    return UserRecord(
        groups=resolve_groups(entry),
        phone=_scalar(obj.get("telephoneNumber")),
        name=_scalar(obj.get("name")),
        mail=_scalar(obj.get("mail")),
        guid=resolve_guid(entry),
        distinguished_name=str(_get(entry, "dn") or _scalar(obj.get(DN))),
    )


def create_group_obj(entry: Any) -> GroupRecord:
    if entry is None or isinstance(entry, (str, bytes)):
        raise DecodeError("Entry must be a structured record")

    obj = _object(entry)
    created = obj.get("whenCreated")
    changed = obj.get("whenChanged")
    return GroupRecord(
        name=_scalar(obj.get("name")),
        distinguished_name=str(_get(entry, "dn") or _scalar(obj.get(DN))),
        guid=resolve_guid(entry),
        description=_scalar(obj.get("description")),
        created_at=convert_to_date(created) if created not in (None, [], "") else None,
        changed_at=convert_to_date(changed) if changed not in (None, [], "") else None,
    )


def detect_logon_type(username: str) -> str:
    if "@" in username:
        return UPN
    if "dc=" in username.lower():
        return DN
    return SAM


def clean_sama(value: str) -> str:
    """Strip a DOMAIN\\ prefix from a legacy account name."""
    return value.rsplit("\\", 1)[-1]


def convert_to_date(value: Any) -> datetime:
    """Parse a GeneralizedTime value (YYYYMMDDHHMMSS...) as UTC."""
    if isinstance(value, (list, tuple)):
        value = value[0] if value else None

    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).replace(microsecond=0)

    if isinstance(value, (bytes, bytearray)):
        value = bytes(value).decode("ascii", errors="replace")
    if not isinstance(value, str) or len(value) < 14:
        raise DecodeError(f"Invalid directory timestamp: {value!r}")

    try:
        return datetime(
            int(value[0:4]),
            int(value[4:6]),
            int(value[6:8]),
            int(value[8:10]),
            int(value[10:12]),
            int(value[12:14]),
            tzinfo=timezone.utc,
        )
    except ValueError as e:
        raise DecodeError(f"Invalid directory timestamp: {value!r}") from e
