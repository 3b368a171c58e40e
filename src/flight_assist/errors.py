"""Exception types raised by the flight assist package."""


class FlightAssistError(Exception):
    """Base class for flight assist errors."""


class MissingCollaboratorError(FlightAssistError):
    """
    A required host block could not be found.

    Attributes:
        block_type: Kind of block that was looked up (e.g. "remote control").
        name: Configured block name, or a description of the lookup.
    """

    def __init__(self, block_type: str, name: str, detail: str = ""):
        self.block_type = block_type
        self.name = name
        message = f"Missing {block_type} block '{name}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class ConfigError(ValueError):
    """Invalid flight assist configuration."""
