"""Network directory (LDAP) backend placeholder"""
from typing import List, Optional

from adbrowser.models.directory import Computer, Group, ManualDirectoryConfig, OrganizationalUnit, User
from adbrowser.services.connector import DirectoryConnector, ObjectsInContainer, UnsupportedOperationError


NOT_IMPLEMENTED_MESSAGE = "Reading the directory over LDAP is not implemented yet."


class NetworkDirectoryConnector(DirectoryConnector):
    """Connector for a directory server reached over the network.

    Only the connection settings are kept; every query fails with
    UnsupportedOperationError.
    """

    def __init__(self, config: Optional[ManualDirectoryConfig] = None):
        self.config = config

    def _unsupported(self):
        raise UnsupportedOperationError(NOT_IMPLEMENTED_MESSAGE)

    def fetch_container_tree(self) -> List[OrganizationalUnit]:
        self._unsupported()

    def fetch_objects(self, container_id: str) -> ObjectsInContainer:
        self._unsupported()

    def fetch_all_users(self) -> List[User]:
        self._unsupported()

    def fetch_all_groups(self) -> List[Group]:
        self._unsupported()

    def fetch_all_computers(self) -> List[Computer]:
        self._unsupported()

    def needs_manual_configuration(self) -> bool:
        return self.config is None

    def configure_manually(self, config: ManualDirectoryConfig) -> None:
        self.config = config
