from __future__ import annotations

from typing import Any

from p4bridge.exceptions.base import P4BridgeError


class ConfigError(P4BridgeError):
    """Settings could not be read or did not validate.

    Covers unreadable YAML, a settings file that is not a mapping, and
    values rejected by the settings models, including ones coming from
    ``P4BRIDGE_*`` environment variables.

    Attributes:
        field: Dotted path of the offending setting, e.g. ``queue.max_concurrent``.
        value: The rejected value, when there is one.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        value: Any = None,
    ) -> None:
        self.field = field
        self.value = value
        super().__init__(message)
