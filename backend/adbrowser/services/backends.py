"""Connector selection from configuration"""
from typing import Optional

from adbrowser.config import Settings, settings as default_settings
from adbrowser.services.connector import DirectoryConnector
from adbrowser.services.demo_connector import DemoDirectoryConnector
from adbrowser.services.dscl import CommandRunner, DsclDirectoryConnector
from adbrowser.services.network_connector import NetworkDirectoryConnector


def create_connector(settings: Optional[Settings] = None) -> DirectoryConnector:
    """Build the connector named by ``settings.backend``."""
    settings = settings or default_settings

    if settings.backend == "dscl":
        runner = CommandRunner(executable=settings.dscl_path, timeout=settings.command_timeout)
        return DsclDirectoryConnector(runner=runner)
    if settings.backend == "network":
        return NetworkDirectoryConnector()
    return DemoDirectoryConnector(settings.demo_data_file)
