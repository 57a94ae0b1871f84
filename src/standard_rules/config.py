"""
Configuration classes for the rule engine.
"""

from dataclasses import dataclass

from .exceptions import EngineConfigurationError


@dataclass
class EngineConfig:
    """Behavioral switches for an Engine and the sessions it creates."""

    # Priority given to rules registered without one
    default_priority: int = 1

    # use() appends the sub-engine's rules without sorting unless enabled
    resort_on_use: bool = False

    # Sessions share the engine's live rule list unless enabled
    isolate_sessions: bool = False

    # Lock facts against top-level mutation before rules see them
    freeze_facts: bool = True

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Reject values the engine cannot work with."""
        if isinstance(self.default_priority, bool) or not isinstance(
            self.default_priority, int
        ):
            raise EngineConfigurationError(
                f"default_priority must be an int, got {type(self.default_priority).__name__}",
                config_field="default_priority",
                config_value=self.default_priority,
            )
