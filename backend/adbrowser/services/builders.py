"""Build typed directory records from raw attribute dumps"""
import uuid
from typing import Any, List, Mapping, Optional, Union

from adbrowser.models.directory import Computer, Group, User
from adbrowser.services.attributes import AttributeDump, parse_attributes
from adbrowser.services.decoders import (
    display_name_from_dn,
    extract_cn,
    filetime_to_datetime,
    is_locked_out,
    parse_counter,
    parse_generalized_time,
    parse_int,
    primary_group_name,
)


NATIVE_PREFIX = "dsAttrTypeNative:"

RawAttributes = Union[AttributeDump, Mapping[str, Any], str, bytes]


class EntityBuildError(ValueError):
    """Raised when a record has no usable account name."""


class _Attributes:
    """Lookup over an attribute dump accepting native-prefixed and bare names."""

    def __init__(self, raw: RawAttributes):
        self.dump = raw if isinstance(raw, AttributeDump) else parse_attributes(raw)

    def _names(self, names) -> List[str]:
        expanded = []
        for name in names:
            if not name.startswith(NATIVE_PREFIX):
                expanded.append(NATIVE_PREFIX + name)
            expanded.append(name)
        return expanded

    def first(self, *names: str) -> Optional[str]:
        return self.dump.first(*self._names(names))

    def all(self, *names: str) -> List[str]:
        return self.dump.values_of(*self._names(names))

    def filetime(self, *names: str):
        return filetime_to_datetime(self.first(*names))

    def generalized_time(self, *names: str):
        return parse_generalized_time(self.first(*names))


def _account_name(attrs: _Attributes, record_name: Optional[str]) -> str:
    name = attrs.first("sAMAccountName") or record_name or attrs.first("RecordName")
    if not name:
        raise EntityBuildError("Record has no account name")
    return name


def _object_id(attrs: _Attributes) -> str:
    return attrs.first("objectGUID", "GeneratedUID") or str(uuid.uuid4())


def _names_of(dns: List[str]) -> List[str]:
    # Same length and order as ``dns``
    return [display_name_from_dn(dn) for dn in dns]


def build_user(raw: RawAttributes, ou_id: str, record_name: Optional[str] = None) -> User:
    """Build a User from a raw attribute dump.

    Args:
        raw: Attribute dump (parsed or raw tool output)
        ou_id: Owning container id
        record_name: Lookup key the record was read with (login name)

    Returns:
        User record

    Raises:
        EntityBuildError: if no account name can be determined
    """
    attrs = _Attributes(raw)
    sam_account_name = _account_name(attrs, record_name)

    pwd_last_set_raw = attrs.first("pwdLastSet")
    password_last_set = filetime_to_datetime(pwd_last_set_raw)
    manager = attrs.first("manager")
    primary_group_id = parse_int(attrs.first("primaryGroupID"))

    return User(
        id=_object_id(attrs),
        firstName=attrs.first("givenName", "FirstName"),
        lastName=attrs.first("sn", "LastName"),
        displayName=attrs.first("displayName", "RealName") or sam_account_name,
        description=attrs.first("description"),
        office=attrs.first("physicalDeliveryOfficeName"),
        telephone=attrs.first("telephoneNumber", "PhoneNumber"),
        email=attrs.first("EMailAddress", "mail"),
        webPage=attrs.first("wWWHomePage"),
        street=attrs.first("streetAddress"),
        poBox=attrs.first("postOfficeBox"),
        city=attrs.first("l"),
        state=attrs.first("st"),
        postalCode=attrs.first("postalCode"),
        country=attrs.first("c", "co"),
        sAMAccountName=sam_account_name,
        userPrincipalName=attrs.first("userPrincipalName"),
        objectSID=attrs.first("objectSid"),
        userAccountControl=parse_int(attrs.first("userAccountControl")),
        isLocked=is_locked_out(attrs.first("lockoutTime")),
        mustChangePassword=password_last_set is None or pwd_last_set_raw == "0",
        accountExpires=attrs.filetime("accountExpires"),
        passwordLastSet=password_last_set,
        lastLogon=attrs.filetime("lastLogon") or attrs.filetime("lastLogonTimestamp"),
        logonCount=parse_counter(attrs.first("logonCount")),
        badPasswordCount=parse_counter(attrs.first("badPwdCount")),
        badPasswordTime=attrs.filetime("badPasswordTime"),
        profilePath=attrs.first("profilePath"),
        scriptPath=attrs.first("scriptPath"),
        homeDirectory=attrs.first("homeDirectory", "NFSHomeDirectory"),
        homeDrive=attrs.first("homeDrive"),
        homePhone=attrs.first("homePhone"),
        pager=attrs.first("pager"),
        mobile=attrs.first("mobile"),
        fax=attrs.first("facsimileTelephoneNumber"),
        ipPhone=attrs.first("ipPhone"),
        title=attrs.first("title", "JobTitle"),
        department=attrs.first("department"),
        company=attrs.first("company"),
        manager=manager,
        managerDisplayName=extract_cn(manager),
        directReports=attrs.all("directReports"),
        memberOf=attrs.all("memberOf"),
        primaryGroupID=primary_group_id,
        primaryGroup=primary_group_name(primary_group_id),
        distinguishedName=attrs.first("distinguishedName"),
        objectGUID=attrs.first("objectGUID", "GeneratedUID"),
        whenCreated=attrs.generalized_time("whenCreated"),
        whenChanged=attrs.generalized_time("whenChanged"),
        objectClass=attrs.all("objectClass"),
        ouID=ou_id,
    )


def build_group(raw: RawAttributes, ou_id: str, record_name: Optional[str] = None) -> Group:
    """Build a Group from a raw attribute dump."""
    attrs = _Attributes(raw)
    sam_account_name = _account_name(attrs, record_name)

    members = attrs.all("member", "GroupMembership")
    member_of = attrs.all("memberOf")
    managed_by = attrs.first("managedBy")

    return Group(
        id=_object_id(attrs),
        name=attrs.first("RecordName", "cn", "name") or record_name or sam_account_name,
        sAMAccountName=sam_account_name,
        description=attrs.first("description", "Comment"),
        email=attrs.first("mail", "EMailAddress"),
        notes=attrs.first("info"),
        groupTypeValue=parse_int(attrs.first("groupType")) or 0,
        objectSID=attrs.first("objectSid"),
        distinguishedName=attrs.first("distinguishedName"),
        objectGUID=attrs.first("objectGUID", "GeneratedUID"),
        members=members,
        memberNames=_names_of(members),
        memberOf=member_of,
        memberOfNames=_names_of(member_of),
        whenCreated=attrs.generalized_time("whenCreated"),
        whenChanged=attrs.generalized_time("whenChanged"),
        managedBy=managed_by,
        managedByName=extract_cn(managed_by),
        ouID=ou_id,
    )


def build_computer(raw: RawAttributes, ou_id: str, record_name: Optional[str] = None) -> Computer:
    """Build a Computer from a raw attribute dump."""
    attrs = _Attributes(raw)
    sam_account_name = _account_name(attrs, record_name)

    member_of = attrs.all("memberOf")
    managed_by = attrs.first("managedBy")
    primary_group_id = parse_int(attrs.first("primaryGroupID"))

    return Computer(
        id=_object_id(attrs),
        name=attrs.first("RecordName", "cn", "name") or record_name or sam_account_name,
        sAMAccountName=sam_account_name,
        dnsHostName=attrs.first("dNSHostName"),
        description=attrs.first("description", "Comment"),
        location=attrs.first("location"),
        operatingSystem=attrs.first("operatingSystem"),
        operatingSystemVersion=attrs.first("operatingSystemVersion"),
        operatingSystemServicePack=attrs.first("operatingSystemServicePack"),
        objectSID=attrs.first("objectSid"),
        userAccountControl=parse_int(attrs.first("userAccountControl")),
        accountExpires=attrs.filetime("accountExpires"),
        lastLogon=attrs.filetime("lastLogon") or attrs.filetime("lastLogonTimestamp"),
        logonCount=parse_counter(attrs.first("logonCount")),
        badPasswordCount=parse_counter(attrs.first("badPwdCount")),
        badPasswordTime=attrs.filetime("badPasswordTime"),
        passwordLastSet=attrs.filetime("pwdLastSet"),
        memberOf=member_of,
        memberOfNames=_names_of(member_of),
        primaryGroupID=primary_group_id,
        primaryGroup=primary_group_name(primary_group_id),
        managedBy=managed_by,
        managedByName=extract_cn(managed_by),
        distinguishedName=attrs.first("distinguishedName"),
        objectGUID=attrs.first("objectGUID", "GeneratedUID"),
        whenCreated=attrs.generalized_time("whenCreated"),
        whenChanged=attrs.generalized_time("whenChanged"),
        objectClass=attrs.all("objectClass"),
        ouID=ou_id,
    )
