"""
API for the configuration file.
Exposes read_config and the Config TypedDict.
"""
import tomllib
from copy import deepcopy
from pathlib import Path
from typing import TypedDict


class _LoggingConfig(TypedDict):
    stderr_level: int|str
    file_level: int|str
    directory: str


class _RegistryConfig(TypedDict):
    factories: dict[str, str]


class Config(TypedDict):
    """
    Typing for the configuration object.
    """
    Logging: _LoggingConfig
    Registry: _RegistryConfig


DEFAULT_CONFIG: Config = {
    "Logging": {
        "stderr_level": "INFO",
        "file_level": "DEBUG",
        "directory": "",
    },
    "Registry": {
        "factories": {},
    },
}


def read_config(path: str|Path) -> Config:
    """
    Loads the configuration out of (path) as a dictionary.
    Sections and keys missing from the file are taken from DEFAULT_CONFIG.
    A missing file yields the defaults.
    """
    config = deepcopy(DEFAULT_CONFIG)
    if not Path(path).exists():
        return config
    with open(path, "rb") as config_file:
        # Not using ConfigParser.read for better error detection
        loaded = tomllib.load(config_file)
    for section, values in loaded.items():
        config.setdefault(section, {}).update(values)  # type: ignore
    return config
