"""Application configuration"""
from pydantic_settings import BaseSettings
from pathlib import Path
from typing import Literal


class Settings(BaseSettings):
    app_name: str = "AD Browser"
    debug: bool = False

    # Directory backend: demo data, local dscl tool or network directory
    backend: Literal["demo", "dscl", "network"] = "demo"

    # External query tool
    dscl_path: str = "/usr/bin/dscl"
    command_timeout: int = 30

    # Paths
    base_dir: Path = Path(__file__).parent.parent
    project_root: Path = base_dir.parent
    demo_data_file: Path = Path(__file__).parent / "data" / "demo_directory.yaml"
    logs_dir: Path = project_root / "logs"
    log_file: Path = logs_dir / "backend.log"

    class Config:
        env_prefix = "ADB_"


settings = Settings()
