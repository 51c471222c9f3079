"""
Tests for the record decoder helpers.
"""

from datetime import datetime, timedelta, timezone

import pytest

from adconnect.ad import (
    DecodeError,
    RawEntry,
    UserRecord,
    clean_sama,
    convert_to_date,
    create_group_obj,
    create_user_obj,
    detect_logon_type,
    resolve_groups,
    resolve_guid,
)

from conftest import GUID_BYTES, GUID_TEXT, make_item


def test_resolve_guid_reference_value(test_entry):
    assert resolve_guid(test_entry) == GUID_TEXT


def test_resolve_guid_zero_pads_bytes():
    entry = {"object": {}, "attributes": [{"type": "objectGUID", "raw_values": [bytes(range(16))]}]}
    assert resolve_guid(entry) == "03020100-0504-0706-0809-0a0b0c0d0e0f"


def test_resolve_guid_from_raw_entry():
    entry = RawEntry.from_ldap3(make_item("CN=x", {}, {"objectGUID": [GUID_BYTES]}))
    assert resolve_guid(entry) == GUID_TEXT


@pytest.mark.parametrize("entry", [None, {"object": {}}, {"object": {}, "attributes": "objectGUID"}])
def test_resolve_guid_requires_attribute_sequence(entry):
    with pytest.raises(DecodeError):
        resolve_guid(entry)


def test_resolve_guid_missing_object_guid():
    entry = {"object": {}, "attributes": [{"type": "cn", "raw_values": [b"x"]}]}
    with pytest.raises(DecodeError):
        resolve_guid(entry)


@pytest.mark.parametrize("raw", [GUID_BYTES[:15], GUID_BYTES + b"\x00", b""])
def test_resolve_guid_rejects_wrong_length(raw):
    entry = {"object": {}, "attributes": [{"type": "objectGUID", "raw_values": [raw]}]}
    with pytest.raises(DecodeError):
        resolve_guid(entry)


def test_resolve_groups_from_list(test_entry):
    assert resolve_groups(test_entry) == ["Group1", "Group2"]


def test_resolve_groups_from_single_string_takes_every_cn():
    """A flattened single value yields all CN components, not only the first."""
    entry = {"object": {"memberOf": "CN=Group1,CN=Group2,DC=domain,DC=com"}}
    assert resolve_groups(entry) == ["Group1", "Group2"]


def test_resolve_groups_list_takes_leading_cn_only():
    entry = {"object": {"memberOf": ["CN=Group1,CN=Users,DC=domain,DC=com"]}}
    assert resolve_groups(entry) == ["Group1"]


def test_resolve_groups_missing_member_of(test_entry):
    test_entry["object"]["memberOf"] = None
    assert resolve_groups(test_entry) == []
    del test_entry["object"]["memberOf"]
    assert resolve_groups(test_entry) == []


def test_resolve_groups_unexpected_shape():
    assert resolve_groups({"object": {"memberOf": 42}}) == []


@pytest.mark.parametrize("entry", [None, "CN=x", {"object": "CN=x"}])
def test_resolve_groups_invalid_entry(entry):
    with pytest.raises(DecodeError):
        resolve_groups(entry)


def test_create_user_obj(test_entry):
    user = create_user_obj(test_entry)
    assert user == UserRecord(
        groups=["Group1", "Group2"],
        phone="+1 12312312324",
        name="Test User",
        mail="test@domain.com",
        guid=GUID_TEXT,
        distinguished_name="CN=Test User,OU=Test,DC=domain,DC=com",
    )


def test_create_user_obj_defaults(test_entry):
    for key in ("telephoneNumber", "mail", "name", "memberOf"):
        del test_entry["object"][key]

    user = create_user_obj(test_entry)
    assert user.phone == ""
    assert user.mail == ""
    assert user.name == ""
    assert user.groups == []
    assert user.guid == GUID_TEXT


def test_create_user_obj_flattens_list_values():
    item = make_item(
        "CN=u,DC=domain,DC=com",
        {"mail": ["first@domain.com", "second@domain.com"], "telephoneNumber": [], "name": ["U"]},
        {"objectGUID": [GUID_BYTES]},
    )
    user = create_user_obj(RawEntry.from_ldap3(item))
    assert user.mail == "first@domain.com"
    assert user.phone == ""
    assert user.name == "U"
    assert user.to_dict()["distinguished_name"] == "CN=u,DC=domain,DC=com"


@pytest.mark.parametrize("entry", [None, "entry"])
def test_create_user_obj_invalid_entry(entry):
    with pytest.raises(DecodeError):
        create_user_obj(entry)


def test_create_group_obj():
    item = make_item(
        "CN=Admins,OU=Groups,DC=domain,DC=com",
        {
            "name": "Admins",
            "description": ["Domain admins"],
            "whenCreated": "20190304101112.0Z",
            "whenChanged": datetime(2021, 5, 6, 7, 8, 9, 123456, tzinfo=timezone.utc),
        },
        {"objectGUID": [GUID_BYTES]},
    )
    group = create_group_obj(RawEntry.from_ldap3(item))
    assert group.name == "Admins"
    assert group.distinguished_name == "CN=Admins,OU=Groups,DC=domain,DC=com"
    assert group.guid == GUID_TEXT
    assert group.description == "Domain admins"
    assert group.created_at == datetime(2019, 3, 4, 10, 11, 12, tzinfo=timezone.utc)
    assert group.changed_at == datetime(2021, 5, 6, 7, 8, 9, tzinfo=timezone.utc)


def test_create_group_obj_without_timestamps():
    item = make_item("CN=G,DC=domain,DC=com", {"name": "G"}, {"objectGUID": [GUID_BYTES]})
    group = create_group_obj(RawEntry.from_ldap3(item))
    assert group.created_at is None
    assert group.changed_at is None
    assert group.description == ""


@pytest.mark.parametrize(
    "username, expected",
    [
        ("jdoe@domain.com", "userPrincipalName"),
        ("CN=John Doe,OU=Users,DC=domain,DC=com", "distinguishedName"),
        ("cn=john,dc=domain,dc=com", "distinguishedName"),
        ("CN=a@b,DC=domain,DC=com", "userPrincipalName"),
        ("DOMAIN\\jdoe", "sAMAccountName"),
        ("jdoe", "sAMAccountName"),
    ],
)
def test_detect_logon_type(username, expected):
    assert detect_logon_type(username) == expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("DOMAIN\\jdoe", "jdoe"),
        ("a\\b\\jdoe", "jdoe"),
        ("jdoe", "jdoe"),
        ("", ""),
    ],
)
def test_clean_sama(value, expected):
    assert clean_sama(value) == expected


def test_convert_to_date():
    assert convert_to_date("20200115103045.0Z") == datetime(2020, 1, 15, 10, 30, 45, tzinfo=timezone.utc)
    assert convert_to_date(b"20200115103045.0Z") == datetime(2020, 1, 15, 10, 30, 45, tzinfo=timezone.utc)
    assert convert_to_date(["19991231235959Z"]) == datetime(1999, 12, 31, 23, 59, 59, tzinfo=timezone.utc)


def test_convert_to_date_normalizes_datetimes():
    local = datetime(2020, 1, 15, 12, 30, 45, 999, tzinfo=timezone(timedelta(hours=2)))
    assert convert_to_date(local) == datetime(2020, 1, 15, 10, 30, 45, tzinfo=timezone.utc)
    assert convert_to_date(datetime(2020, 1, 15)).tzinfo == timezone.utc


@pytest.mark.parametrize("value", ["2020", "2020AB15103045.0Z", "20201315103045.0Z", None, 20200115103045])
def test_convert_to_date_rejects_garbage(value):
    with pytest.raises(DecodeError):
        convert_to_date(value)
