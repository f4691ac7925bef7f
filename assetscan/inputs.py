"""The set of asset inputs available by default."""

from __future__ import annotations

from . import azure_input, gcp_input, hostdata


def default_plugins() -> list:
    """Every built-in asset input plugin."""
    return [
        gcp_input.plugin(),
        azure_input.plugin(),
        hostdata.plugin(),
    ]