"""Directory models"""
from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from adbrowser.services.decoders import (
    ComputerType,
    GroupScope,
    GroupType,
    cannot_change_password,
    computer_type_from,
    group_scope_from_value,
    group_type_from_value,
    is_enabled,
    is_trusted_for_delegation,
    password_never_expires,
)


class DirectoryModel(BaseModel):
    """Immutable snapshot value."""
    model_config = ConfigDict(frozen=True)


class ObjectKind(str, Enum):
    USER = "user"
    GROUP = "group"
    COMPUTER = "computer"
    CONTAINER = "container"


class OrganizationalUnit(DirectoryModel):
    """Organizational unit (container)."""
    id: str
    name: str
    parentID: Optional[str] = None
    distinguishedName: Optional[str] = None
    description: Optional[str] = None
    whenCreated: Optional[datetime] = None
    whenChanged: Optional[datetime] = None


class OUNode(DirectoryModel):
    """Container tree node. ``children`` is None for leaves."""
    id: str
    name: str
    children: Optional[List["OUNode"]] = None


class User(DirectoryModel):
    """Directory user account."""
    id: str

    # General
    firstName: Optional[str] = None
    lastName: Optional[str] = None
    displayName: str
    description: Optional[str] = None
    office: Optional[str] = None
    telephone: Optional[str] = None
    email: Optional[str] = None
    webPage: Optional[str] = None

    # Address
    street: Optional[str] = None
    poBox: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postalCode: Optional[str] = None
    country: Optional[str] = None

    # Account
    sAMAccountName: str
    userPrincipalName: Optional[str] = None
    objectSID: Optional[str] = None
    userAccountControl: Optional[int] = None
    isLocked: bool = False
    mustChangePassword: bool = False
    accountExpires: Optional[datetime] = None
    passwordLastSet: Optional[datetime] = None
    lastLogon: Optional[datetime] = None
    logonCount: Optional[int] = Field(default=None, ge=0)
    badPasswordCount: Optional[int] = Field(default=None, ge=0)
    badPasswordTime: Optional[datetime] = None

    # Profile
    profilePath: Optional[str] = None
    scriptPath: Optional[str] = None
    homeDirectory: Optional[str] = None
    homeDrive: Optional[str] = None

    # Telephones
    homePhone: Optional[str] = None
    pager: Optional[str] = None
    mobile: Optional[str] = None
    fax: Optional[str] = None
    ipPhone: Optional[str] = None

    # Organization
    title: Optional[str] = None
    department: Optional[str] = None
    company: Optional[str] = None
    manager: Optional[str] = None
    managerDisplayName: Optional[str] = None
    directReports: List[str] = Field(default_factory=list)

    # Member of
    memberOf: List[str] = Field(default_factory=list)
    primaryGroupID: Optional[int] = None
    primaryGroup: Optional[str] = None

    # Metadata
    distinguishedName: Optional[str] = None
    objectGUID: Optional[str] = None
    whenCreated: Optional[datetime] = None
    whenChanged: Optional[datetime] = None
    objectClass: List[str] = Field(default_factory=list)

    ouID: str

    @computed_field
    @property
    def isEnabled(self) -> bool:
        return is_enabled(self.userAccountControl)

    @computed_field
    @property
    def passwordNeverExpires(self) -> bool:
        return password_never_expires(self.userAccountControl)

    @computed_field
    @property
    def cannotChangePassword(self) -> bool:
        return cannot_change_password(self.userAccountControl)

    @property
    def fullName(self) -> str:
        """Given name and surname, falling back to display name then login."""
        first = self.firstName or ""
        last = self.lastName or ""
        if not first and not last:
            return self.displayName or self.sAMAccountName
        return f"{first} {last}".strip()

    @property
    def accountStatus(self) -> str:
        if not self.isEnabled:
            return "Disabled"
        if self.isLocked:
            return "Locked"
        return "Active"


class Group(DirectoryModel):
    """Directory group."""
    id: str
    name: str
    sAMAccountName: str
    description: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    groupTypeValue: int = 0

    objectSID: Optional[str] = None
    distinguishedName: Optional[str] = None
    objectGUID: Optional[str] = None

    # Parallel lists: memberNames[i] is the display name of members[i]
    members: List[str] = Field(default_factory=list)
    memberNames: List[str] = Field(default_factory=list)
    memberOf: List[str] = Field(default_factory=list)
    memberOfNames: List[str] = Field(default_factory=list)

    whenCreated: Optional[datetime] = None
    whenChanged: Optional[datetime] = None
    managedBy: Optional[str] = None
    managedByName: Optional[str] = None

    ouID: str

    @computed_field
    @property
    def groupType(self) -> GroupType:
        return group_type_from_value(self.groupTypeValue)

    @computed_field
    @property
    def groupScope(self) -> GroupScope:
        return group_scope_from_value(self.groupTypeValue)

    @computed_field
    @property
    def memberCount(self) -> int:
        return len(self.members)


class Computer(DirectoryModel):
    """Directory computer account."""
    id: str
    name: str
    sAMAccountName: str
    dnsHostName: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None

    operatingSystem: Optional[str] = None
    operatingSystemVersion: Optional[str] = None
    operatingSystemServicePack: Optional[str] = None

    objectSID: Optional[str] = None
    userAccountControl: Optional[int] = None
    accountExpires: Optional[datetime] = None
    lastLogon: Optional[datetime] = None
    logonCount: Optional[int] = Field(default=None, ge=0)
    badPasswordCount: Optional[int] = Field(default=None, ge=0)
    badPasswordTime: Optional[datetime] = None
    passwordLastSet: Optional[datetime] = None

    memberOf: List[str] = Field(default_factory=list)
    memberOfNames: List[str] = Field(default_factory=list)
    primaryGroupID: Optional[int] = None
    primaryGroup: Optional[str] = None

    managedBy: Optional[str] = None
    managedByName: Optional[str] = None

    distinguishedName: Optional[str] = None
    objectGUID: Optional[str] = None
    whenCreated: Optional[datetime] = None
    whenChanged: Optional[datetime] = None
    objectClass: List[str] = Field(default_factory=list)

    ouID: str

    @computed_field
    @property
    def isEnabled(self) -> bool:
        return is_enabled(self.userAccountControl)

    @computed_field
    @property
    def isTrustedForDelegation(self) -> bool:
        return is_trusted_for_delegation(self.userAccountControl)

    @computed_field
    @property
    def computerType(self) -> ComputerType:
        return computer_type_from(self.operatingSystem, self.userAccountControl)

    @property
    def displayName(self) -> str:
        """Machine name without the trailing '$' of the account name."""
        clean_name = self.name[:-1] if self.name.endswith("$") else self.name
        return clean_name or self.sAMAccountName

    @property
    def accountStatus(self) -> str:
        return "Active" if self.isEnabled else "Disabled"

    @property
    def osInfo(self) -> str:
        parts = [
            p for p in (self.operatingSystem, self.operatingSystemVersion, self.operatingSystemServicePack)
            if p
        ]
        return " ".join(parts) if parts else "Unknown"


class SearchResult(DirectoryModel):
    """Uniform projection of any directory object for search output."""
    id: str
    kind: ObjectKind
    displayName: str
    secondaryText: Optional[str] = None
    distinguishedName: Optional[str] = None


class ObjectSummary(DirectoryModel):
    """List row shown for the selected container or a search."""
    id: str
    kind: ObjectKind
    primaryText: str
    secondaryText: Optional[str] = None
    isDisabled: bool = False
    isLocked: bool = False

    @classmethod
    def from_user(cls, user: User) -> "ObjectSummary":
        return cls(
            id=user.id,
            kind=ObjectKind.USER,
            primaryText=user.displayName or user.sAMAccountName,
            secondaryText=user.email,
            isDisabled=not user.isEnabled,
            isLocked=user.isLocked,
        )

    @classmethod
    def from_group(cls, group: Group) -> "ObjectSummary":
        return cls(
            id=group.id,
            kind=ObjectKind.GROUP,
            primaryText=group.name,
            secondaryText=group.description,
        )

    @classmethod
    def from_computer(cls, computer: Computer) -> "ObjectSummary":
        return cls(
            id=computer.id,
            kind=ObjectKind.COMPUTER,
            primaryText=computer.displayName,
            secondaryText=computer.osInfo,
            isDisabled=not computer.isEnabled,
        )

    @classmethod
    def from_search_result(cls, result: SearchResult) -> "ObjectSummary":
        return cls(
            id=result.id,
            kind=result.kind,
            primaryText=result.displayName,
            secondaryText=result.secondaryText,
        )


class ObjectSelection(DirectoryModel):
    """An object picked in the list, resolved by details()."""
    kind: ObjectKind
    id: str


class ManualDirectoryConfig(BaseModel):
    """Connection settings entered when no domain is detected."""
    model_config = ConfigDict(str_strip_whitespace=True)

    server: str = Field(min_length=1)
    domain: str = Field(min_length=1)
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
