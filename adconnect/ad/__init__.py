"""Active Directory (LDAP) connector.

Public API:
    - ActiveDirectory: authenticate_and_fetch / list_groups / list_users
    - decoder helpers usable without a connection
    - error taxonomy and resolve_bind_error
"""

from .client import ActiveDirectory
from .decoder import (
    clean_sama,
    convert_to_date,
    create_group_obj,
    create_user_obj,
    detect_logon_type,
    resolve_groups,
    resolve_guid,
)
from .errors import (
    BindError,
    CredentialTypeError,
    DecodeError,
    DirectoryError,
    InvalidCredentialsError,
    SearchError,
    TransportError,
    resolve_bind_error,
)
from .models import GroupRecord, OperationResult, RawAttribute, RawEntry, SearchRequest, UserRecord

__all__ = [
    "ActiveDirectory",
    "BindError",
    "CredentialTypeError",
    "DecodeError",
    "DirectoryError",
    "GroupRecord",
    "InvalidCredentialsError",
    "OperationResult",
    "RawAttribute",
    "RawEntry",
    "SearchError",
    "SearchRequest",
    "TransportError",
    "UserRecord",
    "clean_sama",
    "convert_to_date",
    "create_group_obj",
    "create_user_obj",
    "detect_logon_type",
    "resolve_bind_error",
    "resolve_groups",
    "resolve_guid",
]
