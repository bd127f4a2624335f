"""Dispatch configuration.

DispatchConfig is a frozen dataclass, immutable after creation.
"""

from dataclasses import dataclass

from perch.errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class DispatchConfig:
    """Dispatcher configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = DispatchConfig(cancel_parameter="cancel")
    """

    # Event dispatch
    default_key: str = "default"  # Reserved key naming the fallback target
    image_suffix: str = ".x"  # <input type="image"> reports name.x / name.y

    # Cancel buttons
    cancel_parameter: str = "perch.cancel"
    cancelled_method: str = "cancelled"

    # Fallback when no method name could be determined
    unspecified_method: str = "unspecified"

    # Names that would re-enter the dispatcher
    reserved_methods: tuple[str, ...] = ("execute", "perform")

    def __post_init__(self) -> None:
        if not self.default_key:
            msg = "DispatchConfig.default_key must not be empty."
            raise ConfigurationError(msg)
        if not self.image_suffix:
            msg = "DispatchConfig.image_suffix must not be empty."
            raise ConfigurationError(msg)
        if not self.cancel_parameter:
            msg = "DispatchConfig.cancel_parameter must not be empty."
            raise ConfigurationError(msg)


DEFAULT_CONFIG = DispatchConfig()
