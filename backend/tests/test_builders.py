"""Tests for building typed records from attribute dumps"""
from datetime import datetime, timezone

import pytest
from hypothesis import given, strategies as st, settings

from adbrowser.services.attributes import parse_attributes_text
from adbrowser.services.builders import EntityBuildError, build_computer, build_group, build_user
from adbrowser.services.decoders import ComputerType, GroupScope, GroupType


def test_user_from_text_dump():
    dump = parse_attributes_text(
        "RecordName: jdoe\n dsAttrTypeNative:mail: jdoe@example.local\nuserAccountControl: 512\n"
    )

    user = build_user(dump, "ou-1")

    assert user.sAMAccountName == "jdoe"
    assert user.email == "jdoe@example.local"
    assert user.isEnabled is True
    assert user.displayName == "jdoe"
    assert user.ouID == "ou-1"


def test_user_native_attributes_take_precedence():
    user = build_user({
        "dsAttrTypeNative:sAMAccountName": ["jdoe"],
        "dsAttrTypeNative:displayName": ["John Doe"],
        "RealName": ["J. Doe"],
        "dsAttrTypeNative:userAccountControl": ["66050"],
        "dsAttrTypeNative:manager": ["CN=Maria Gonzales,OU=IT,DC=example,DC=local"],
        "dsAttrTypeNative:memberOf": ["CN=A,DC=x", "CN=B,DC=x"],
        "dsAttrTypeNative:whenCreated": ["20240115103000.0Z"],
    }, "ou-1")

    assert user.displayName == "John Doe"
    assert user.isEnabled is False
    assert user.passwordNeverExpires is True
    assert user.managerDisplayName == "Maria Gonzales"
    assert user.memberOf == ["CN=A,DC=x", "CN=B,DC=x"]
    assert user.whenCreated == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)
    assert user.accountStatus == "Disabled"


def test_user_password_and_lockout_fields():
    user = build_user({
        "sAMAccountName": "asmith",
        "pwdLastSet": "0",
        "lockoutTime": "133949149200000000",
        "logonCount": "-3",
        "accountExpires": "9223372036854775807",
    }, "ou-1")

    assert user.mustChangePassword is True
    assert user.passwordLastSet is None
    assert user.isLocked is True
    assert user.accountStatus == "Locked"
    assert user.logonCount is None
    assert user.accountExpires is None


def test_user_missing_account_control_is_enabled():
    user = build_user({"sAMAccountName": "jdoe", "pwdLastSet": "133537536000000000"}, "ou-1")
    assert user.userAccountControl is None
    assert user.isEnabled is True
    assert user.mustChangePassword is False


def test_user_record_name_fallback():
    user = build_user({"displayName": "Guest"}, "ou-1", record_name="guest")
    assert user.sAMAccountName == "guest"


def test_user_without_any_name_fails():
    with pytest.raises(EntityBuildError):
        build_user({"displayName": "Nobody"}, "ou-1")


def test_user_object_guid_is_id():
    user = build_user({"sAMAccountName": "jdoe", "objectGUID": "guid-1"}, "ou-1")
    assert user.id == "guid-1"
    assert user.objectGUID == "guid-1"


def test_users_without_guid_get_distinct_ids():
    first = build_user({"sAMAccountName": "jdoe"}, "ou-1")
    second = build_user({"sAMAccountName": "jdoe"}, "ou-1")
    assert first.id != second.id


def test_full_name():
    user = build_user({"sAMAccountName": "jdoe", "givenName": "John", "sn": "Doe"}, "ou-1")
    assert user.fullName == "John Doe"


def test_group_members_and_names_are_parallel():
    group = build_group({
        "sAMAccountName": "IT Staff",
        "cn": "IT Staff",
        "groupType": "-2147483646",
        "member": [
            "CN=John Doe,OU=IT,DC=example,DC=local",
            "OU=Odd,DC=example,DC=local",
            "CN=Maria Gonzales,OU=IT,DC=example,DC=local",
        ],
        "managedBy": "CN=Maria Gonzales,OU=IT,DC=example,DC=local",
    }, "ou-groups")

    assert group.name == "IT Staff"
    assert group.memberNames == ["John Doe", "OU=Odd,DC=example,DC=local", "Maria Gonzales"]
    assert group.memberCount == 3
    assert group.groupType == GroupType.SECURITY
    assert group.groupScope == GroupScope.DOMAIN_LOCAL
    assert group.managedByName == "Maria Gonzales"


def test_group_membership_fallback():
    group = build_group({"RecordName": "staff", "GroupMembership": ["jdoe", "asmith"]}, "ou-groups")
    assert group.members == ["jdoe", "asmith"]
    assert group.groupTypeValue == 0
    assert group.groupType == GroupType.DISTRIBUTION
    assert group.groupScope == GroupScope.UNKNOWN


@given(members=st.lists(
    st.from_regex(r"CN=[A-Za-z ]{1,20},OU=[A-Za-z]{1,10},DC=example,DC=local", fullmatch=True),
    max_size=20,
))
@settings(max_examples=100)
def test_group_member_names_length_matches(members):
    """For any member list, memberNames has the same length and order."""
    group = build_group({"sAMAccountName": "g", "member": members}, "ou")
    assert len(group.memberNames) == len(group.members)
    assert group.members == members


def test_computer_domain_controller():
    computer = build_computer({
        "sAMAccountName": "DC01$",
        "cn": "DC01",
        "operatingSystem": "Windows Server 2022 Datacenter",
        "operatingSystemVersion": "10.0 (20348)",
        "userAccountControl": "532480",
    }, "ou-dcs")

    assert computer.computerType == ComputerType.DOMAIN_CONTROLLER
    assert computer.isTrustedForDelegation is True
    assert computer.osInfo == "Windows Server 2022 Datacenter 10.0 (20348)"
    assert computer.displayName == "DC01"


def test_computer_name_from_record_strips_dollar():
    computer = build_computer({}, "ou", record_name="WS-01$")
    assert computer.name == "WS-01$"
    assert computer.displayName == "WS-01"
    assert computer.osInfo == "Unknown"
    assert computer.computerType == ComputerType.UNKNOWN


def test_primary_group_resolved_for_builtin_rids():
    user = build_user({"sAMAccountName": "jdoe", "primaryGroupID": "513"}, "ou")
    computer = build_computer({"sAMAccountName": "DC01$", "primaryGroupID": "516"}, "ou")
    custom = build_user({"sAMAccountName": "svc", "primaryGroupID": "1105"}, "ou")

    assert user.primaryGroup == "Domain Users"
    assert computer.primaryGroup == "Domain Controllers"
    assert custom.primaryGroupID == 1105
    assert custom.primaryGroup is None
