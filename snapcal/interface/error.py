"""Interface layer errors."""


class InterfaceError(Exception):
    """Base interface error."""

    pass


class CommandFormatError(InterfaceError):
    """Chat command was not in the expected format."""

    pass
