"""Pluggy hook specifications for third-party resource plugins.

A distribution contributes resource plugins by exposing an object in the
``cfman.plugins`` entry-point group that implements
:meth:`CfmanHookSpec.cfman_resource_plugins`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import pluggy

if TYPE_CHECKING:
    from cfman.plugins.contracts import ResourcePlugin

PROJECT_NAME = "cfman"

hookspec = pluggy.HookspecMarker(PROJECT_NAME)
hookimpl = pluggy.HookimplMarker(PROJECT_NAME)


class CfmanHookSpec:
    """Hook specifications for the cfman plugin system."""

    @hookspec
    def cfman_resource_plugins(self) -> list[ResourcePlugin] | None:
        """Return resource plugins to register at bootstrap."""
