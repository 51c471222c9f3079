from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ldap3 import Connection, Server
from ldap3.core.exceptions import LDAPException

from ..config import DirectoryConfig
from .errors import BindError, InvalidCredentialsError, INVALID_CREDENTIALS_KIND, SearchError, TransportError
from .models import RawEntry, SearchRequest
from .utils import ldap3_scope

logger = logging.getLogger(__name__)

ConnectionFactory = Callable[[Server, DirectoryConfig, str, str], Any]


def default_connection_factory(server: Server, cfg: DirectoryConfig, user: str, password: str) -> Connection:
    return Connection(
        server,
        user=user,
        password=password,
        auto_bind=False,
        raise_exceptions=False,
        receive_timeout=cfg.idle_timeout,
    )


class DirectorySession:
    """Owns a single connection for one logical operation.

    Use as a context manager: the connection is opened and bound on enter and
    unbound exactly once on exit, whatever happened inside the block.
    """

    def __init__(
        self,
        cfg: DirectoryConfig,
        server: Server,
        user: str,
        password: str,
        connection_factory: Optional[ConnectionFactory] = None,
        log: Optional[logging.Logger] = None,
    ) -> None:
        self.cfg = cfg
        self.server = server
        self.user = user
        self._password = password
        self._factory = connection_factory or default_connection_factory
        self.log = log or logger
        self.conn: Any = None
        self._closed = False

    def __enter__(self) -> "DirectorySession":
        try:
            self.open()
            self.bind()
        except BaseException:
            self.close()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def open(self) -> None:
        try:
            self.conn = self._factory(self.server, self.cfg, self.user, self._password)
            self.conn.open()
            if self.cfg.tls.start_tls:
                self.conn.start_tls()
        except LDAPException as e:
            self.log.warning("LDAP connection to %s failed: %s", self.cfg.url, e)
            raise TransportError(f"Connection to {self.cfg.url} failed: {e}") from e

    def bind(self) -> None:
        if not self._password:
            # a simple bind with an empty password is an anonymous bind and succeeds
            raise InvalidCredentialsError("empty password")

        try:
            ok = bool(self.conn.bind())
        except LDAPException as e:
            self.log.warning("LDAP bind for %s failed: %s", self.user, e)
            raise TransportError(f"Bind request failed: {e}") from e

        if ok:
            self.log.debug("LDAP bind ok for %s", self.user)
            return

        res = dict(self.conn.result or {})
        kind = str(res.get("description") or "")
        message = str(res.get("message") or "")
        self.log.info("LDAP bind rejected for %s: %s", self.user, kind or "unknown error")
        if kind == INVALID_CREDENTIALS_KIND:
            raise InvalidCredentialsError(message, result=res)
        raise BindError(kind, message, result=res)

    def search(self, request: SearchRequest) -> list[RawEntry]:
        """Run one search and return its entries in the order they arrived."""
        try:
            self.conn.search(
                search_base=request.base,
                search_filter=request.filter,
                search_scope=ldap3_scope(request.scope),
                attributes=list(request.attributes),
                size_limit=request.size_limit,
            )
        except LDAPException as e:
            self.log.warning("LDAP search under %r failed: %s", request.base, e)
            raise TransportError(f"Search request failed: {e}") from e

        res = dict(self.conn.result or {})
        entries = [
            RawEntry.from_ldap3(item)
            for item in (self.conn.response or [])
            if item.get("type") == "searchResEntry"
        ]
        # anything but success fails the search, sizeLimitExceeded included
        if res.get("result", 0) != 0:
            self.log.warning("LDAP search under %r rejected: %s", request.base, res.get("description"))
            raise SearchError(res, entries)

        self.log.debug("LDAP search %s under %r returned %d entries", request.filter, request.base, len(entries))
        return entries

    def close(self) -> None:
        """Unbind the connection. Safe to call any number of times."""
        if self._closed:
            return
        self._closed = True
        if self.conn is None:
            return
        try:
            self.conn.unbind()
        except Exception as e:
            self.log.debug("LDAP unbind failed: %s", e)
