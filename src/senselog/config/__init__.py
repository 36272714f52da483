"""Configuration objects and helpers for SenseLog.

Sessions are described by a YAML file (see the bundled ``session.yaml``)
that is loaded into the typed :class:`~senselog.config.runtime.SessionConfig`
dataclass. The pipeline pieces receive plain values from it; nothing reads
the environment or global state.
"""

from .runtime import (
    DEFAULT_CONFIG_PATH,
    SessionConfig,
    config_from_mapping,
    generate_device_id,
    load_config,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SessionConfig",
    "config_from_mapping",
    "generate_device_id",
    "load_config",
]
