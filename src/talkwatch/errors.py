"""Exception types raised by talkwatch."""


class TalkwatchError(Exception):
    """Base class for talkwatch errors."""


class ConfigurationError(TalkwatchError):
    """The wiki configuration cannot be used for discussion parsing."""


class TimestampFormatError(ConfigurationError):
    """The generated timestamp pattern does not match its own exemplar."""

    def __init__(self, exemplar: str, pattern: str) -> None:
        super().__init__(f"Timestamp regex {pattern!r} does not match exemplar {exemplar!r}")
        self.exemplar = exemplar
        self.pattern = pattern


class DiffParseError(TalkwatchError):
    """A diff produced by the diff engine is inconsistent with its inputs."""
