"""Property-based tests for attribute value decoders"""
from datetime import datetime, timezone

import pytest
from hypothesis import given, strategies as st, settings

from adbrowser.services.decoders import (
    EPOCH_DELTA_SECONDS,
    TICKS_PER_SECOND,
    ComputerType,
    GroupScope,
    GroupType,
    UserAccountControl,
    computer_type_from,
    datetime_to_filetime,
    display_name_from_dn,
    extract_cn,
    filetime_to_datetime,
    group_scope_from_value,
    group_type_from_value,
    is_enabled,
    is_locked_out,
    parse_counter,
    parse_generalized_time,
    parse_int,
    password_never_expires,
)


# **Feature: adbrowser, Property: account-control flags**
@given(value=st.integers(min_value=0, max_value=2**32 - 1))
@settings(max_examples=100)
def test_account_control_flags(value: int):
    """For any account-control value, enabled and never-expires follow their bits."""
    assert is_enabled(value) == (not value & 0x2)
    assert password_never_expires(value) == bool(value & 0x10000)


def test_missing_account_control_means_enabled():
    assert is_enabled(None) is True
    assert password_never_expires(None) is False


# **Feature: adbrowser, Property: tick timestamp round-trip**
@given(dt=st.datetimes(
    min_value=datetime(1970, 1, 1),
    max_value=datetime(2099, 12, 31, 23, 59, 59),
))
@settings(max_examples=100)
def test_filetime_roundtrip(dt: datetime):
    """Dates in [1970, 2100) survive encoding to ticks and back."""
    dt = dt.replace(microsecond=0, tzinfo=timezone.utc)

    decoded = filetime_to_datetime(str(datetime_to_filetime(dt)))

    assert decoded == dt


@given(ticks=st.integers(max_value=0))
@settings(max_examples=100)
def test_non_positive_ticks_are_absent(ticks: int):
    assert filetime_to_datetime(str(ticks)) is None


@pytest.mark.parametrize("value", [
    "9223372036854775807",  # never expires
    str(EPOCH_DELTA_SECONDS * TICKS_PER_SECOND - 1),  # before 1970
    str(datetime_to_filetime(datetime(2100, 1, 1, tzinfo=timezone.utc))),
    "not a number",
    None,
])
def test_out_of_range_ticks_are_absent(value):
    assert filetime_to_datetime(value) is None


def test_filetime_known_value():
    assert filetime_to_datetime("116444736000000000") == datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_generalized_time_forms_agree():
    with_fraction = parse_generalized_time("20240115103000.0Z")
    without_fraction = parse_generalized_time("20240115103000Z")

    assert with_fraction == without_fraction
    assert with_fraction == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def test_generalized_time_with_offset_is_utc():
    parsed = parse_generalized_time("20240115123000+0200")
    assert parsed == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [None, "", "yesterday", "2024-01-15"])
def test_invalid_generalized_time(value):
    assert parse_generalized_time(value) is None


@pytest.mark.parametrize("value,expected", [
    (-2147483646, GroupType.SECURITY),
    (-2147483640, GroupType.SECURITY),
    (0x80000002, GroupType.SECURITY),
    (2, GroupType.DISTRIBUTION),
    (8, GroupType.DISTRIBUTION),
])
def test_group_type(value, expected):
    assert group_type_from_value(value) == expected


@pytest.mark.parametrize("value,expected", [
    (1, GroupScope.GLOBAL),
    (2, GroupScope.DOMAIN_LOCAL),
    (4, GroupScope.GLOBAL),
    (8, GroupScope.UNIVERSAL),
    (-2147483646, GroupScope.DOMAIN_LOCAL),
    (-2147483640, GroupScope.UNIVERSAL),
    (0, GroupScope.UNKNOWN),
    (3, GroupScope.UNKNOWN),
])
def test_group_scope(value, expected):
    assert group_scope_from_value(value) == expected


@given(value=st.integers(min_value=-2**31, max_value=2**32 - 1))
@settings(max_examples=100)
def test_group_type_and_scope_never_raise(value: int):
    assert group_type_from_value(value) in GroupType
    assert group_scope_from_value(value) in GroupScope


@pytest.mark.parametrize("os_name,uac,expected", [
    ("Windows Server 2022", UserAccountControl.DOMAIN_CONTROLLER_TRUST, ComputerType.DOMAIN_CONTROLLER),
    ("Windows 11", UserAccountControl.SERVER_TRUST, ComputerType.SERVER),
    ("Windows Server 2019 Standard", None, ComputerType.SERVER),
    ("Windows 11 Enterprise", None, ComputerType.WORKSTATION),
    ("macOS", None, ComputerType.WORKSTATION),
    ("Ubuntu Linux", 0, ComputerType.WORKSTATION),
    ("FreeBSD", None, ComputerType.UNKNOWN),
    (None, None, ComputerType.UNKNOWN),
])
def test_computer_type(os_name, uac, expected):
    assert computer_type_from(os_name, uac) == expected


@pytest.mark.parametrize("value,expected", [
    (None, False),
    ("0", False),
    ("garbage", False),
    ("133949149200000000", True),
])
def test_lockout(value, expected):
    assert is_locked_out(value) is expected


def test_parse_int_and_counter():
    assert parse_int(" 512 ") == 512
    assert parse_int("x") is None
    assert parse_counter("-1") is None
    assert parse_counter("7") == 7


@pytest.mark.parametrize("dn,expected", [
    ("CN=John Doe,OU=Users,DC=example,DC=com", "John Doe"),
    ("cn=Staff,OU=Groups,DC=example,DC=com", "Staff"),
    ("OU=Users,DC=example,DC=com", None),
    ("", None),
    (None, None),
])
def test_extract_cn(dn, expected):
    assert extract_cn(dn) == expected


def test_display_name_from_dn_falls_back_to_dn():
    assert display_name_from_dn("OU=Users,DC=example,DC=com") == "OU=Users,DC=example,DC=com"
    assert display_name_from_dn("CN=IT Staff,OU=Groups,DC=x") == "IT Staff"
