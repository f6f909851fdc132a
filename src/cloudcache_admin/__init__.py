"""cloudcache-admin - run commands against a PCC cluster's management REST API."""

from .__about__ import __version__
from .catalog import discover
from .dispatcher import dispatch
from .renderer import render
from .tokenizer import parse

__all__ = [
    "__version__",
    "discover",
    "dispatch",
    "parse",
    "render",
]
