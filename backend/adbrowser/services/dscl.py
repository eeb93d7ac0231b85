"""Directory connector backed by the macOS ``dscl`` tool.

Assumes the machine is bound to an Active Directory domain. The whole domain is
read once (list every record, then dump each record's attributes) and kept
until invalidate() is called.
"""
import subprocess
import threading
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Sequence, Tuple

from adbrowser.config import settings
from adbrowser.logger import get_logger
from adbrowser.models.directory import Computer, Group, ManualDirectoryConfig, OrganizationalUnit, User
from adbrowser.services.attributes import parse_attributes
from adbrowser.services.builders import EntityBuildError, build_computer, build_group, build_user
from adbrowser.services.connector import (
    BackendUnreachableError,
    ConnectorError,
    DirectoryConnector,
    ObjectsInContainer,
)
from adbrowser.services.network_connector import NetworkDirectoryConnector


logger = get_logger("services.dscl")

AD_ROOT = "/Active Directory"


class CommandRunner:
    """Runs the external query tool locally."""

    def __init__(self, executable: Optional[str] = None, timeout: Optional[int] = None):
        self.executable = executable or settings.dscl_path
        self.timeout = timeout or settings.command_timeout

    def execute(self, args: Sequence[str]) -> Tuple[int, str, str]:
        """Execute the tool with a fixed argument list.

        Args:
            args: Arguments passed to the executable

        Returns:
            Tuple of (exit_code, stdout, stderr)

        Raises:
            BackendUnreachableError: if the tool is missing or times out
        """
        command = [self.executable, *args]
        logger.debug("Running %s", command)
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise BackendUnreachableError(f"Directory tool not found: {self.executable}") from e
        except subprocess.TimeoutExpired as e:
            raise BackendUnreachableError(
                f"Directory tool timed out after {self.timeout}s: {' '.join(args)}"
            ) from e
        except OSError as e:
            raise BackendUnreachableError(f"Could not run directory tool: {e}") from e
        return completed.returncode, completed.stdout, completed.stderr


class FetchState(str, Enum):
    UNFETCHED = "unfetched"
    FETCHING = "fetching"
    CACHED = "cached"
    FAILED = "failed"


@dataclass(frozen=True)
class DirectorySnapshot:
    containers: List[OrganizationalUnit] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)
    computers: List[Computer] = field(default_factory=list)


def domain_name_from_node(node_path: str) -> str:
    """"/Active Directory/CORP/All Domains" -> "CORP"."""
    parts = [p for p in node_path.split("/") if p]
    if len(parts) >= 2:
        return parts[1]
    return "AD Domain"


def _stable_id(*parts: str) -> str:
    return str(uuid.uuid5(uuid.NAMESPACE_URL, "dscl:" + "/".join(parts)))


def _lines(output: str) -> List[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


class DsclDirectoryConnector(DirectoryConnector):
    """Read-only connector over ``dscl``.

    The snapshot follows UNFETCHED -> FETCHING -> CACHED | FAILED and is only
    fetched again after invalidate(). Once manual settings are supplied the
    connector switches to network mode, which is not implemented.
    """

    def __init__(self, runner: Optional[CommandRunner] = None, config: Optional[ManualDirectoryConfig] = None):
        self.runner = runner or CommandRunner()
        self.config = config
        self.state = FetchState.UNFETCHED
        self._snapshot: Optional[DirectorySnapshot] = None
        self._error: Optional[ConnectorError] = None
        self._needs_manual_config = False
        self._lock = threading.Lock()

    # Capabilities

    def needs_manual_configuration(self) -> bool:
        return self._needs_manual_config

    def configure_manually(self, config: ManualDirectoryConfig) -> None:
        self.config = config
        self._needs_manual_config = False
        self.invalidate()

    def invalidate(self) -> None:
        with self._lock:
            self.state = FetchState.UNFETCHED
            self._snapshot = None
            self._error = None

    # Snapshot

    def _ensure_fetched(self) -> DirectorySnapshot:
        with self._lock:
            if self.state == FetchState.CACHED:
                return self._snapshot
            if self.state == FetchState.FAILED:
                raise self._error

            self.state = FetchState.FETCHING
            try:
                if self.config is not None:
                    NetworkDirectoryConnector(self.config).fetch_container_tree()
                snapshot = self._fetch_snapshot()
            except ConnectorError as e:
                self.state = FetchState.FAILED
                self._error = e
                logger.error("Directory fetch failed: %s", e.message)
                raise

            self._snapshot = snapshot
            self.state = FetchState.CACHED
            logger.info(
                "Fetched directory: %d users, %d groups, %d computers",
                len(snapshot.users), len(snapshot.groups), len(snapshot.computers),
            )
            return snapshot

    def _run(self, args: Sequence[str]) -> str:
        exit_code, stdout, stderr = self.runner.execute(args)
        if exit_code != 0:
            message = stderr.strip() or f"dscl failed with status {exit_code}"
            raise BackendUnreachableError(message)
        return stdout

    def detect_node(self) -> str:
        """Find the Active Directory node this machine is bound to."""
        detail = None
        try:
            output = self._run(["localhost", "-list", AD_ROOT])
        except BackendUnreachableError as e:
            logger.warning("Domain detection failed: %s", e.message)
            output = ""
            detail = e.message

        domains = _lines(output)
        if not domains:
            self._needs_manual_config = True
            message = "No Active Directory domain detected. Enter the directory settings manually."
            if detail:
                message = f"{message} ({detail})"
            raise BackendUnreachableError(message)
        return f"{AD_ROOT}/{domains[0]}"

    def _fetch_snapshot(self) -> DirectorySnapshot:
        node_path = self.detect_node()
        domain = domain_name_from_node(node_path)

        root = OrganizationalUnit(
            id=_stable_id(node_path),
            name=domain,
            description="Active Directory domain",
        )
        users_ou = OrganizationalUnit(
            id=_stable_id(node_path, "Users"),
            name="Users",
            parentID=root.id,
            description="All domain users",
        )
        groups_ou = OrganizationalUnit(
            id=_stable_id(node_path, "Groups"),
            name="Groups",
            parentID=root.id,
            description="All domain groups",
        )
        computers_ou = OrganizationalUnit(
            id=_stable_id(node_path, "Computers"),
            name="Computers",
            parentID=root.id,
            description="All domain computers",
        )

        base = f"{node_path}/All Domains"
        users = self._load_records(f"{base}/Users", users_ou.id, build_user)
        groups = self._load_records(f"{base}/Groups", groups_ou.id, build_group)
        computers = self._load_records(f"{base}/Computers", computers_ou.id, build_computer)

        return DirectorySnapshot(
            containers=[root, users_ou, groups_ou, computers_ou],
            users=sorted(users, key=lambda u: u.displayName.casefold()),
            groups=sorted(groups, key=lambda g: g.name.casefold()),
            computers=sorted(computers, key=lambda c: c.displayName.casefold()),
        )

    def _load_records(self, path: str, ou_id: str, builder: Callable) -> list:
        names = _lines(self._run(["localhost", "-list", path]))
        records = []
        for name in names:
            try:
                output = self._run(["-plist", "localhost", "-read", f"{path}/{name}"])
                records.append(builder(parse_attributes(output), ou_id, record_name=name))
            except (BackendUnreachableError, EntityBuildError) as e:
                logger.warning("Skipping record %s/%s: %s", path, name, e)
        return records

    # DirectoryConnector

    def fetch_container_tree(self) -> List[OrganizationalUnit]:
        return list(self._ensure_fetched().containers)

    def fetch_objects(self, container_id: str) -> ObjectsInContainer:
        snapshot = self._ensure_fetched()
        return (
            [u for u in snapshot.users if u.ouID == container_id],
            [g for g in snapshot.groups if g.ouID == container_id],
            [c for c in snapshot.computers if c.ouID == container_id],
        )

    def fetch_all_users(self) -> List[User]:
        return list(self._ensure_fetched().users)

    def fetch_all_groups(self) -> List[Group]:
        return list(self._ensure_fetched().groups)

    def fetch_all_computers(self) -> List[Computer]:
        return list(self._ensure_fetched().computers)
