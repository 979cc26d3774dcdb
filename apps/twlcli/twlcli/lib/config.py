"""Configuration management for twlcli.

Settings live in an optional `twl.yaml`:
- collections_dir: directory holding `<os>.yaml` collections
- os: default target operating system
- level: default recommendation level
- banner / banner_template: per-script comment banners
- homepage, version: values of the `$homepage` and `$version` globals
- interpreter: command used by `twl run` instead of the OS default

Command-line options always override the file.
"""

from __future__ import annotations

import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError
from yaml import YAMLError

from twl.ast.spec import Recommend
from twl.platform import TargetOS

from .._version import __version__
from .errors import EXIT_LOAD, TwlCliError

CONFIG_FILENAME = "twl.yaml"
CONFIG_ENV = "TWL_CONFIG"


class TwlConfig(BaseModel):
    """twl.yaml configuration"""

    collections_dir: Path = Field(
        default=Path("collections"), description="Directory with <os>.yaml collections"
    )
    os: TargetOS | None = Field(default=None, description="Default target OS")
    level: Recommend | None = Field(default=None, description="Default recommendation level")
    banner: bool = Field(default=True, description="Wrap each script in a comment banner")
    banner_template: str | None = Field(
        default=None, description="Jinja2 template overriding the default banner"
    )
    homepage: str = Field(default="https://privacy.sexy", description="Value of $homepage")
    version: str = Field(default=__version__, description="Value of $version")
    interpreter: list[str] | None = Field(
        default=None, description="Command prefix used to execute scripts"
    )

    # Directory of the loaded file; relative paths resolve against it
    root: Path | None = Field(default=None, exclude=True)

    @classmethod
    def load(cls, path: Path | None) -> "TwlConfig":
        """Load config from yaml file, or defaults when there is none."""
        if path is None or not path.exists():
            return cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, YAMLError) as exc:
            raise TwlCliError(f"Cannot read {path}: {exc}", EXIT_LOAD) from exc

        if not isinstance(data, dict):
            raise TwlCliError(f"Invalid config {path}: expected a mapping", EXIT_LOAD)

        try:
            config = cls.model_validate(data)
        except ValidationError as exc:
            raise TwlCliError(f"Invalid config {path}: {exc}", EXIT_LOAD) from exc
        config.root = path.resolve().parent
        return config

    def collection_path(self, target: TargetOS) -> Path:
        """Path of the collection shipped for `target`."""
        directory = self.collections_dir
        if not directory.is_absolute():
            directory = (self.root or Path.cwd()) / directory
        return directory / f"{target.value}.yaml"


def find_config_file() -> Path | None:
    """Find twl.yaml via TWL_CONFIG, or in the current directory or parents."""
    env_path = os.environ.get(CONFIG_ENV)
    if env_path:
        return Path(env_path)

    cwd = Path.cwd()
    for parent in [cwd] + list(cwd.parents):
        candidate = parent / CONFIG_FILENAME
        if candidate.exists():
            return candidate
    return None


def load_config() -> TwlConfig:
    return TwlConfig.load(find_config_file())
