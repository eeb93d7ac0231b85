"""Read-only directory connector contract shared by all backends"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from adbrowser.models.directory import (
    Computer,
    Group,
    ManualDirectoryConfig,
    ObjectKind,
    OrganizationalUnit,
    SearchResult,
    User,
)


class ConnectorErrorKind(str, Enum):
    BACKEND_UNREACHABLE = "backend-unreachable"
    PARSE_FAILURE = "parse-failure"
    UNSUPPORTED_OPERATION = "unsupported-operation"


class ConnectorError(Exception):
    """Directory backend failure with a human-readable message."""
    kind = ConnectorErrorKind.BACKEND_UNREACHABLE

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BackendUnreachableError(ConnectorError):
    kind = ConnectorErrorKind.BACKEND_UNREACHABLE


class ParseFailureError(ConnectorError):
    kind = ConnectorErrorKind.PARSE_FAILURE


class UnsupportedOperationError(ConnectorError):
    kind = ConnectorErrorKind.UNSUPPORTED_OPERATION


ObjectsInContainer = Tuple[List[User], List[Group], List[Computer]]


class DirectoryConnector(ABC):
    """Uniform read-only query surface over a directory backend.

    Every operation may raise ConnectorError.
    """

    @abstractmethod
    def fetch_container_tree(self) -> List[OrganizationalUnit]:
        """All containers; the caller builds the hierarchy."""

    @abstractmethod
    def fetch_objects(self, container_id: str) -> ObjectsInContainer:
        """Users, groups and computers directly inside one container."""

    @abstractmethod
    def fetch_all_users(self) -> List[User]:
        ...

    @abstractmethod
    def fetch_all_groups(self) -> List[Group]:
        ...

    @abstractmethod
    def fetch_all_computers(self) -> List[Computer]:
        ...

    def search_objects(self, query: str) -> List[SearchResult]:
        """Case-insensitive substring search over users, groups and computers."""
        return search_snapshot(
            self.fetch_all_users(),
            self.fetch_all_groups(),
            self.fetch_all_computers(),
            query,
        )

    def fetch_user_details(self, user_id: str) -> Optional[User]:
        return next((u for u in self.fetch_all_users() if u.id == user_id), None)

    def fetch_group_details(self, group_id: str) -> Optional[Group]:
        return next((g for g in self.fetch_all_groups() if g.id == group_id), None)

    def fetch_computer_details(self, computer_id: str) -> Optional[Computer]:
        return next((c for c in self.fetch_all_computers() if c.id == computer_id), None)

    def needs_manual_configuration(self) -> bool:
        """True when the backend cannot run without connection settings."""
        return False

    def configure_manually(self, config: ManualDirectoryConfig) -> None:
        raise UnsupportedOperationError("This directory backend does not accept manual configuration.")

    def invalidate(self) -> None:
        """Drop any cached data so the next query fetches again."""


def _matches(needle: str, *fields: Optional[str]) -> bool:
    return any(field and needle in field.lower() for field in fields)


def search_snapshot(
    users: Sequence[User],
    groups: Sequence[Group],
    computers: Sequence[Computer],
    query: str,
) -> List[SearchResult]:
    """Filter a snapshot by query.

    Results are users, then groups, then computers, without ranking.
    A blank query matches nothing.
    """
    needle = query.strip().lower()
    if not needle:
        return []

    results = []

    for user in users:
        if _matches(
            needle,
            user.sAMAccountName,
            user.displayName,
            user.userPrincipalName,
            user.email,
            user.firstName,
            user.lastName,
            user.department,
        ):
            results.append(SearchResult(
                id=user.id,
                kind=ObjectKind.USER,
                displayName=user.fullName,
                secondaryText=user.userPrincipalName or user.sAMAccountName,
                distinguishedName=user.distinguishedName,
            ))

    for group in groups:
        if _matches(needle, group.name, group.sAMAccountName, group.description):
            results.append(SearchResult(
                id=group.id,
                kind=ObjectKind.GROUP,
                displayName=group.name,
                secondaryText=f"{group.groupScope.value} - {group.groupType.value}",
                distinguishedName=group.distinguishedName,
            ))

    for computer in computers:
        if _matches(
            needle,
            computer.name,
            computer.sAMAccountName,
            computer.dnsHostName,
            computer.description,
            computer.operatingSystem,
        ):
            results.append(SearchResult(
                id=computer.id,
                kind=ObjectKind.COMPUTER,
                displayName=computer.displayName,
                secondaryText=computer.osInfo,
                distinguishedName=computer.distinguishedName,
            ))

    return results
