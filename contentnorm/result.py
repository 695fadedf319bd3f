"""Parse outcome returned by every driver.

Drivers never raise for bad input: they return a :class:`ParseResult` that
carries either a :class:`~contentnorm.items.Resource` or one or more
:class:`ParseError` values.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from contentnorm.items import Resource


@dataclass(frozen=True)
class ParseError:
    """A terminal failure for one parse call.

    Attributes:
        message   -- short description ("Parse Failure", ...)
        exception -- the underlying exception, if any
        position  -- character position for syntax errors, -1 when unknown
    """

    message: str
    exception: BaseException | None = None
    position: int = -1

    def __str__(self) -> str:
        parts = [self.message]
        if self.position >= 0:
            parts.append(f"at position {self.position}")
        if self.exception is not None:
            parts.append(f"({type(self.exception).__name__}: {self.exception})")
        return " ".join(parts)


@dataclass(frozen=True)
class ParseResult:
    parser_name: str
    resource: Resource | None = None
    errors: tuple[ParseError, ...] = field(default_factory=tuple)

    @classmethod
    def failure(cls, parser_name: str, message: str, exc: BaseException | None = None) -> ParseResult:
        return cls(parser_name, errors=(ParseError(message, exc),))

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    @property
    def has_resource(self) -> bool:
        return self.resource is not None

    @property
    def first_error(self) -> ParseError | None:
        return self.errors[0] if self.errors else None
