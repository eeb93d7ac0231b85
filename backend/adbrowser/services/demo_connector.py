"""In-memory demo directory loaded from YAML"""
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from adbrowser.config import settings
from adbrowser.logger import get_logger
from adbrowser.models.directory import Computer, Group, OrganizationalUnit, User
from adbrowser.services.attributes import parse_attributes
from adbrowser.services.builders import EntityBuildError, build_computer, build_group, build_user
from adbrowser.services.connector import (
    BackendUnreachableError,
    DirectoryConnector,
    ObjectsInContainer,
    ParseFailureError,
)
from adbrowser.services.decoders import parse_generalized_time


logger = get_logger("services.demo_connector")


class DemoDirectoryConnector(DirectoryConnector):
    """Deterministic demo domain.

    The YAML file holds containers plus raw attribute dictionaries for users,
    groups and computers; records go through the same parser and builders as
    real tool output.
    """

    def __init__(self, file_path: Optional[Path] = None):
        self.file_path = file_path or settings.demo_data_file
        self._loaded = False
        self._containers: List[OrganizationalUnit] = []
        self._users: List[User] = []
        self._groups: List[Group] = []
        self._computers: List[Computer] = []

    def _load_yaml(self) -> dict:
        """Load YAML file."""
        if not self.file_path.exists():
            raise BackendUnreachableError(f"Demo directory file not found: {self.file_path}")

        try:
            with open(self.file_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ParseFailureError(f"Invalid demo directory file: {e}") from e

        if not isinstance(data, dict):
            raise ParseFailureError("Demo directory file must contain a mapping")
        return data

    def _dict_to_container(self, data: dict) -> OrganizationalUnit:
        """Convert dictionary to OrganizationalUnit."""
        return OrganizationalUnit(
            id=str(data["id"]),
            name=str(data["name"]),
            parentID=str(data["parent"]) if data.get("parent") is not None else None,
            distinguishedName=data.get("dn"),
            description=data.get("description"),
            whenCreated=parse_generalized_time(data.get("whenCreated")),
            whenChanged=parse_generalized_time(data.get("whenChanged")),
        )

    def _build_all(self, records: list, builder) -> list:
        entities = []
        for record in records or []:
            try:
                entities.append(builder(parse_attributes(record.get("attributes", {})), str(record["container"])))
            except (EntityBuildError, KeyError, AttributeError) as e:
                logger.warning("Skipping demo record %r: %s", record, e)
        return entities

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return

        data = self._load_yaml()
        try:
            containers = [self._dict_to_container(c) for c in data.get("containers", [])]
        except (KeyError, TypeError, ValidationError) as e:
            raise ParseFailureError(f"Invalid container entry in demo directory: {e}") from e

        self._containers = containers
        self._users = self._build_all(data.get("users"), build_user)
        self._groups = self._build_all(data.get("groups"), build_group)
        self._computers = self._build_all(data.get("computers"), build_computer)
        self._loaded = True

        logger.info(
            "Loaded demo directory: %d containers, %d users, %d groups, %d computers",
            len(self._containers), len(self._users), len(self._groups), len(self._computers),
        )

    def fetch_container_tree(self) -> List[OrganizationalUnit]:
        self._ensure_loaded()
        return list(self._containers)

    def fetch_objects(self, container_id: str) -> ObjectsInContainer:
        self._ensure_loaded()
        return (
            [u for u in self._users if u.ouID == container_id],
            [g for g in self._groups if g.ouID == container_id],
            [c for c in self._computers if c.ouID == container_id],
        )

    def fetch_all_users(self) -> List[User]:
        self._ensure_loaded()
        return list(self._users)

    def fetch_all_groups(self) -> List[Group]:
        self._ensure_loaded()
        return list(self._groups)

    def fetch_all_computers(self) -> List[Computer]:
        self._ensure_loaded()
        return list(self._computers)
