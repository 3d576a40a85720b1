from typing import Optional


class FuzzError(Exception):
    """Base error; carries whatever context (word, url, cause) is known."""

    def __init__(self, message: str, *, word: Optional[str] = None,
                 url: Optional[str] = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.word = word
        self.url = url
        self.cause = cause

    def __str__(self) -> str:
        parts = [self.message]
        if self.word is not None:
            parts.append(f"word={self.word!r}")
        if self.url is not None:
            parts.append(f"url={self.url}")
        if self.cause is not None:
            parts.append(f"cause={type(self.cause).__name__}: {self.cause}")
        return "  ".join(parts)


class ConfigError(FuzzError):
    """Raised before any request is sent."""


class PlaceholderNotFound(ConfigError):
    pass


class InvalidLengthFilter(ConfigError, ValueError):
    pass


class WordlistNotFound(ConfigError, FileNotFoundError):
    pass


class HeaderInvalid(FuzzError):
    pass


class TransportError(FuzzError):
    pass
