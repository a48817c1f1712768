"""Runtime configuration shared by the CLI and the pipeline defaults."""

from pathlib import Path
from typing import Optional, Union

import yaml

CONFIG_DIR = Path.home() / ".config" / "azure-network-designer"
CONFIG_FILE = CONFIG_DIR / "config.json"

DEFAULT_REGION = "japaneast"
VALID_FORMATS = ("table", "json", "yaml")


class RuntimeConfig:
    """Process-wide settings singleton.

    Holds CLI-level defaults only. A pipeline run reads the default region
    from here once and never writes back, so concurrent runs share nothing
    mutable.
    """

    _instance: Optional["RuntimeConfig"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._init_defaults()
        return cls._instance

    def _init_defaults(self) -> None:
        self.default_region: str = DEFAULT_REGION
        self.output_format: str = "table"
        self.debug: bool = False
        self.log_file: Optional[str] = None

    @classmethod
    def reset(cls) -> None:
        cls()._init_defaults()

    @classmethod
    def set_default_region(cls, region: str) -> None:
        cls().default_region = region.strip().lower()

    @classmethod
    def get_default_region(cls) -> str:
        return cls().default_region

    @classmethod
    def set_output_format(cls, fmt: str) -> None:
        if fmt not in VALID_FORMATS:
            raise ValueError(
                f"Invalid format: {fmt}. Use one of: {', '.join(VALID_FORMATS)}"
            )
        cls().output_format = fmt

    @classmethod
    def get_output_format(cls) -> str:
        return cls().output_format

    @classmethod
    def set_debug(cls, debug: bool) -> None:
        cls().debug = debug

    @classmethod
    def is_debug(cls) -> bool:
        return cls().debug

    @classmethod
    def set_log_file(cls, path: Optional[str]) -> None:
        cls().log_file = path

    @classmethod
    def get_log_file(cls) -> Optional[str]:
        return cls().log_file

    @classmethod
    def as_dict(cls) -> dict:
        inst = cls()
        return {
            "default_region": inst.default_region,
            "output_format": inst.output_format,
            "debug": inst.debug,
            "log_file": inst.log_file,
        }


def load_config(path: Optional[Union[str, Path]] = None) -> dict:
    """Load settings from a JSON or YAML file into RuntimeConfig.

    A missing default file is not an error; a missing explicit path is.
    Returns the settings that were applied.
    """
    explicit = path is not None
    config_path = Path(path) if explicit else CONFIG_FILE
    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        return {}

    # JSON is a subset of YAML, one loader covers both
    data = yaml.safe_load(config_path.read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a mapping: {config_path}")

    if "default_region" in data:
        RuntimeConfig.set_default_region(str(data["default_region"]))
    if "output_format" in data:
        RuntimeConfig.set_output_format(str(data["output_format"]))
    if "debug" in data:
        RuntimeConfig.set_debug(bool(data["debug"]))
    if "log_file" in data:
        RuntimeConfig.set_log_file(data["log_file"])
    return data
