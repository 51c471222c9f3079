from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, Optional, Union

from ldap3 import ALL, Server

from ..config import DirectoryConfig
from .decoder import SAM, clean_sama, create_group_obj, create_user_obj, detect_logon_type, resolve_groups
from .errors import (
    BindError,
    CredentialTypeError,
    DecodeError,
    SearchError,
    TransportError,
    resolve_bind_error,
)
from .models import OperationResult, RawEntry, SearchRequest
from .session import ConnectionFactory, DirectorySession
from .utils import build_search_request, escape_ldap_filter_value

logger = logging.getLogger(__name__)

ACCOUNT_NOT_FOUND = "Error resolving account"

GROUP_FILTER = "(objectCategory=group)"
USER_FILTER = "(&(objectClass=user)(objectCategory=person))"
GROUP_DETAIL_ATTRIBUTES = (
    "name",
    "distinguishedName",
    "objectGUID",
    "description",
    "whenCreated",
    "whenChanged",
)


def _check_credentials(username: Any, password: Any) -> None:
    if not isinstance(username, str) or not isinstance(password, str):
        raise CredentialTypeError("username and password must be strings")


class ActiveDirectory:
    """Authenticates users against AD and reads the records they can see.

    Every call opens its own connection, binds with the caller's credentials
    and always unbinds before returning. Expected failures (bad credentials,
    missing record, unreachable server) come back as a failed
    `OperationResult`; only non-string credentials raise.
    """

    def __init__(
        self,
        cfg: Union[DirectoryConfig, Mapping[str, Any]],
        log: Optional[logging.Logger] = None,
        connection_factory: Optional[ConnectionFactory] = None,
    ) -> None:
        self.log = log or logger
        if not isinstance(cfg, DirectoryConfig):
            cfg = DirectoryConfig.build(cfg, warn=self.log.warning)
        self.cfg = cfg
        self._connection_factory = connection_factory

        server_kwargs: dict[str, Any] = {"get_info": ALL, "tls": cfg.tls.build_tls()}
        if cfg.connect_timeout:
            server_kwargs["connect_timeout"] = cfg.connect_timeout
        self.server = Server(cfg.url, **server_kwargs)

    def _session(self, username: str, password: str) -> DirectorySession:
        return DirectorySession(
            self.cfg,
            self.server,
            username,
            password,
            connection_factory=self._connection_factory,
            log=self.log,
        )

    def _run(
        self,
        username: str,
        password: str,
        request: SearchRequest,
        handle: Callable[[list[RawEntry]], OperationResult],
    ) -> OperationResult:
        try:
            with self._session(username, password) as session:
                entries = session.search(request)
                # decoding stays inside the block so the connection is released on errors
                return handle(entries)
        except BindError as e:
            return OperationResult.fail(resolve_bind_error(e), e)
        except TransportError as e:
            return OperationResult.fail(None, e.__cause__ or e)
        except (SearchError, DecodeError) as e:
            self.log.warning("Directory request for %s failed: %s", username, e)
            return OperationResult.fail(None, e)

    def authenticate_and_fetch(
        self,
        username: str,
        password: str,
        base: Optional[str] = None,
        search_override: Optional[Mapping[str, Any]] = None,
    ) -> OperationResult:
        """Bind as the user and return their directory entry.

        The login may be a UPN, a DN or a (DOMAIN\\)sAMAccountName. When several
        entries match, the first one wins.
        """
        _check_credentials(username, password)

        logon_type = detect_logon_type(username)
        value = clean_sama(username) if logon_type == SAM else username
        request = build_search_request(
            self.cfg,
            f"({logon_type}={escape_ldap_filter_value(value)})",
            base=base,
            override=search_override,
        )

        def first_entry(entries: list[RawEntry]) -> OperationResult:
            if not entries:
                self.log.info("No directory entry for %s under %r", username, request.base)
                return OperationResult.fail(ACCOUNT_NOT_FOUND)
            self.log.info("Authenticated %s", username)
            return OperationResult.ok(entries[0])

        return self._run(username, password, request, first_entry)

    def list_groups(
        self,
        username: str,
        password: str,
        base: Optional[str] = None,
        detailed: bool = False,
    ) -> OperationResult:
        _check_credentials(username, password)

        request = build_search_request(
            self.cfg,
            GROUP_FILTER,
            base=base,
            attributes=GROUP_DETAIL_ATTRIBUTES if detailed else ("name",),
        )

        def groups(entries: list[RawEntry]) -> OperationResult:
            if detailed:
                return OperationResult.ok([create_group_obj(e) for e in entries])
            return OperationResult.ok(resolve_groups({"object": {"memberOf": [e.dn for e in entries]}}))

        return self._run(username, password, request, groups)

    def list_users(
        self,
        username: str,
        password: str,
        base: Optional[str] = None,
        formatted: bool = False,
    ) -> OperationResult:
        _check_credentials(username, password)

        request = build_search_request(self.cfg, USER_FILTER, base=base)

        def users(entries: list[RawEntry]) -> OperationResult:
            if formatted:
                return OperationResult.ok([create_user_obj(e) for e in entries])
            return OperationResult.ok(entries)

        return self._run(username, password, request, users)
