"""Directory domain service: snapshot cache and queries for the presentation layer"""
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Union

from adbrowser.logger import get_logger
from adbrowser.models.directory import (
    Computer,
    Group,
    ManualDirectoryConfig,
    ObjectKind,
    ObjectSelection,
    ObjectSummary,
    OrganizationalUnit,
    OUNode,
    User,
)
from adbrowser.services.connector import ConnectorError, ConnectorErrorKind, DirectoryConnector
from adbrowser.services.tree import TreeBuildError, build_tree


logger = get_logger("services.domain")

Entity = Union[User, Group, Computer]


class LoadState(str, Enum):
    EMPTY = "empty"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class Snapshot:
    """One complete load of the directory."""
    containers: List[OrganizationalUnit] = field(default_factory=list)
    tree: List[OUNode] = field(default_factory=list)
    users: List[User] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)
    computers: List[Computer] = field(default_factory=list)

    def objects_in(self, container_id: str) -> List[ObjectSummary]:
        return (
            [ObjectSummary.from_user(u) for u in self.users if u.ouID == container_id]
            + [ObjectSummary.from_group(g) for g in self.groups if g.ouID == container_id]
            + [ObjectSummary.from_computer(c) for c in self.computers if c.ouID == container_id]
        )

    def find(self, selection: ObjectSelection) -> Optional[Entity]:
        pool = {
            ObjectKind.USER: self.users,
            ObjectKind.GROUP: self.groups,
            ObjectKind.COMPUTER: self.computers,
        }.get(selection.kind, [])
        return next((entity for entity in pool if entity.id == selection.id), None)


class DirectoryDomainService:
    """Owns the cached snapshot and the observable state shown by the UI.

    All calls are synchronous. Only one load runs at a time; a load requested
    while another is in flight is coalesced, except after a backend swap or
    manual configuration, which wait for it and then load again.
    """

    def __init__(self, connector: DirectoryConnector):
        self.connector = connector
        self.snapshot = Snapshot()
        self.state = LoadState.EMPTY
        self.is_loading = False
        self.error_message: Optional[str] = None
        self.error_kind: Optional[ConnectorErrorKind] = None
        self.selected_container_id: Optional[str] = None
        self.current_objects: List[ObjectSummary] = []
        self._load_lock = threading.Lock()
        self._listeners: List[Callable[["DirectoryDomainService"], None]] = []

    @property
    def root_tree(self) -> List[OUNode]:
        return self.snapshot.tree

    @property
    def needs_manual_configuration(self) -> bool:
        return self.connector.needs_manual_configuration()

    def subscribe(self, callback: Callable[["DirectoryDomainService"], None]) -> None:
        """Register a callback invoked after every state change."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self)

    def _fail(self, error: Exception) -> None:
        self.error_message = getattr(error, "message", None) or str(error)
        self.error_kind = getattr(error, "kind", None)
        logger.error("Directory operation failed: %s", self.error_message)

    def load_tree(self) -> bool:
        """Fetch containers and all objects, replacing the snapshot on success.

        Returns:
            True if a load ran, False if it was coalesced into one in flight
        """
        if not self._load_lock.acquire(blocking=False):
            logger.debug("Load already in progress, request coalesced")
            return False

        try:
            self.is_loading = True
            self.state = LoadState.LOADING
            self._notify()

            try:
                containers = self.connector.fetch_container_tree()
                snapshot = Snapshot(
                    containers=containers,
                    tree=build_tree(containers),
                    users=self.connector.fetch_all_users(),
                    groups=self.connector.fetch_all_groups(),
                    computers=self.connector.fetch_all_computers(),
                )
            except (ConnectorError, TreeBuildError) as e:
                self._fail(e)
                self.state = LoadState.FAILED
                return True
            except Exception as e:
                self._fail(e)
                self.state = LoadState.FAILED
                raise

            self.snapshot = snapshot
            self.error_message = None
            self.error_kind = None
            self.state = LoadState.READY
            self._apply_container_filter()
            logger.info(
                "Directory loaded: %d containers, %d users, %d groups, %d computers",
                len(snapshot.containers), len(snapshot.users), len(snapshot.groups), len(snapshot.computers),
            )
            return True
        finally:
            self.is_loading = False
            self._load_lock.release()
            self._notify()

    def wait_for_load(self) -> None:
        """Block until no load is in flight."""
        with self._load_lock:
            pass

    def ensure_loaded(self) -> None:
        """Run the first load, or wait for the one already in flight."""
        if self.state == LoadState.EMPTY and self.load_tree():
            return
        self.wait_for_load()

    def _load_after_current(self) -> bool:
        while not self.load_tree():
            self.wait_for_load()
        return True

    def refresh(self) -> bool:
        """Drop connector caches and load again."""
        self.connector.invalidate()
        return self.load_tree()

    def _apply_container_filter(self) -> None:
        if self.selected_container_id is None:
            self.current_objects = []
        else:
            self.current_objects = self.snapshot.objects_in(self.selected_container_id)

    def select_container(self, container_id: Optional[str]) -> List[ObjectSummary]:
        """Show the objects of one container from the cached snapshot, or clear."""
        self.selected_container_id = container_id
        self._apply_container_filter()
        self._notify()
        return self.current_objects

    def search(self, text: str) -> List[ObjectSummary]:
        """Search all objects; a blank query restores the container listing."""
        if not text.strip():
            self._apply_container_filter()
        else:
            try:
                results = self.connector.search_objects(text)
            except ConnectorError as e:
                self._fail(e)
            else:
                self.current_objects = [ObjectSummary.from_search_result(r) for r in results]
        self._notify()
        return self.current_objects

    def details(self, selection: Optional[ObjectSelection]) -> Optional[Entity]:
        """Resolve a selected object, from the cache first, then the connector."""
        if selection is None:
            return None

        entity = self.snapshot.find(selection)
        if entity is not None:
            return entity

        fetchers = {
            ObjectKind.USER: self.connector.fetch_user_details,
            ObjectKind.GROUP: self.connector.fetch_group_details,
            ObjectKind.COMPUTER: self.connector.fetch_computer_details,
        }
        fetch = fetchers.get(selection.kind)
        if fetch is None:
            return None
        try:
            return fetch(selection.id)
        except ConnectorError as e:
            self._fail(e)
            self._notify()
            return None

    def set_connector(self, connector: DirectoryConnector) -> bool:
        """Swap the backend and reload everything from it.

        A load in flight for the previous backend is waited for, then the
        new backend is loaded.
        """
        self.connector = connector
        return self._load_after_current()

    def apply_manual_configuration(self, config: ManualDirectoryConfig) -> bool:
        """Hand connection settings to the backend and reload."""
        try:
            self.connector.configure_manually(config)
        except ConnectorError as e:
            self._fail(e)
            self._notify()
            return False
        return self._load_after_current()
