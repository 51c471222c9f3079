"""
Shared fixtures: an in-memory stand-in for an ldap3 Connection.
"""

import pytest
from ldap3.core.exceptions import LDAPSocketOpenError

from adconnect import ActiveDirectory, DirectoryConfig

GUID_BYTES = bytes.fromhex("10E7D4174D627849900B8549CB753699")
GUID_TEXT = "17d4e710-624d-4978-900b-8549cb753699"

INVALID_CREDS_MESSAGE = "80090308: LdapErr: DSID-0C09042A, comment: AcceptSecurityContext error, data 52e, v3839"
LOCKED_OUT_MESSAGE = "80090308: LdapErr: DSID-0C09042A, comment: AcceptSecurityContext error, data 775, v3839"


def make_item(dn, attributes=None, raw_attributes=None):
    return {
        "type": "searchResEntry",
        "dn": dn,
        "attributes": attributes or {},
        "raw_attributes": raw_attributes or {},
    }


def user_item(dn="CN=Test User,OU=Test,DC=domain,DC=com", **attributes):
    attrs = {
        "name": "Test User",
        "mail": "test@domain.com",
        "telephoneNumber": "+1 12312312324",
        "userPrincipalName": "test@domain.com",
        "sAMAccountName": "test",
        "memberOf": [
            "CN=Group1,OU=Test,DC=domain,DC=com",
            "CN=Group2,OU=Test,OU=Test2,DC=domain,DC=com",
        ],
    }
    attrs.update(attributes)
    return make_item(dn, attrs, {"objectGUID": [GUID_BYTES]})


class FakeConnection:
    def __init__(self, directory, user, password):
        self.directory = directory
        self.user = user
        self.password = password
        self.result = None
        self.response = None
        self.opened = False
        self.tls_started = False
        self.unbind_calls = 0
        self.searches = []

    def open(self):
        if self.directory.unreachable:
            raise LDAPSocketOpenError("socket connection error while opening: [Errno 111] Connection refused")
        self.opened = True

    def start_tls(self):
        self.tls_started = True
        return True

    def bind(self):
        if self.directory.bind_result is not None:
            self.result = dict(self.directory.bind_result)
            return False
        if self.directory.passwords.get(self.user) != self.password:
            self.result = {"result": 49, "description": "invalidCredentials", "message": INVALID_CREDS_MESSAGE}
            return False
        self.result = {"result": 0, "description": "success", "message": ""}
        return True

    def search(self, search_base, search_filter, search_scope=None, attributes=None, size_limit=0):
        self.searches.append(
            {
                "base": search_base,
                "filter": search_filter,
                "scope": search_scope,
                "attributes": attributes,
                "size_limit": size_limit,
            }
        )
        if self.directory.search_exception is not None:
            raise self.directory.search_exception
        self.result = dict(self.directory.search_result)
        self.response = list(self.directory.items)
        return bool(self.response)

    def unbind(self):
        self.unbind_calls += 1
        return True


class FakeDirectory:
    def __init__(self):
        self.passwords = {}
        self.items = []
        self.unreachable = False
        self.bind_result = None
        self.search_result = {"result": 0, "description": "success", "message": ""}
        self.search_exception = None
        self.connections = []

    def connect(self, server, cfg, user, password):
        conn = FakeConnection(self, user, password)
        self.connections.append(conn)
        return conn


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def config():
    return DirectoryConfig(
        url="ldaps://dc01.domain.com",
        base="DC=domain,DC=com",
        search_options={"scope": "sub", "size_limit": 100},
    )


@pytest.fixture
def client(config, directory):
    return ActiveDirectory(config, connection_factory=directory.connect)


@pytest.fixture
def test_entry():
    return {
        "dn": "CN=Test User,OU=Test,DC=domain,DC=com",
        "object": {
            "memberOf": [
                "CN=Group1,OU=Test,DC=domain,DC=com",
                "CN=Group2,OU=Test,OU=Test2,DC=domain,DC=com",
            ],
            "mail": "test@domain.com",
            "telephoneNumber": "+1 12312312324",
            "name": "Test User",
        },
        "attributes": [
            {"type": "objectGUID", "raw_values": [GUID_BYTES]},
        ],
    }
