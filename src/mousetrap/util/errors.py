"""Exceptions raised by the mousetrap guard."""


class MousetrapError(Exception):
    """Base class for guard errors."""


class ConfigIOError(MousetrapError):
    """The guard configuration file could not be read, parsed or written."""

    def __init__(self, message: str, *, path=None) -> None:
        super().__init__(message)
        self.path = path
