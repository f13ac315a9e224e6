"""
Package version, read from installed metadata or, in a source checkout, from pyproject.toml.
"""
import importlib.metadata
import pathlib

import tomli

_DISTRIBUTION = "aori-sdk"
_DEFAULT_VERSION = "0.1.0"


def _version_from_pyproject() -> str:
    path = pathlib.Path(__file__).parent.parent / "pyproject.toml"
    try:
        with path.open("rb") as f:
            return tomli.load(f)["project"]["version"]
    except (FileNotFoundError, KeyError, tomli.TOMLDecodeError):
        return _DEFAULT_VERSION


try:
    __version__ = importlib.metadata.version(_DISTRIBUTION)
except importlib.metadata.PackageNotFoundError:
    __version__ = _version_from_pyproject()
