"""Formatting helpers shared by the CLI and GUI front-ends."""

from .convert_utils import ConvertUtils

__all__ = ["ConvertUtils"]
