from __future__ import annotations

from typing import Optional

from quasi.types.position import Position


class QuasiError(Exception):
    """ Base class for all quasi errors"""

    def __init__(self, message: str, position: Optional[Position] = None):
        self.message = message
        self.position = position
        if position is not None:
            message = f"{message} (at {position})"
        super().__init__(message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class QuasiParseError(QuasiError):
    """ Raised when source text is malformed"""


class QuasiCaptureError(QuasiError):
    """ Raised when an argument is captured outside a call or after it was forced"""


class QuasiSpliceError(QuasiError):
    """ Raised when a splice marker is not an element of an argument list"""


class QuasiNameError(QuasiError):
    """ Raised when an identifier is not bound anywhere in the environment chain"""

    def __init__(self, name: str, position: Optional[Position] = None):
        self.name = name
        super().__init__(f"Cannot lookup unbound identifier '{name}'", position)


class QuasiCallError(QuasiError):
    """ Raised when the callee of a call is not invocable"""


class QuasiUnresolvedUnquoteError(QuasiError):
    """ Raised when evaluation reaches an unquote or splice marker"""


class QuasiTypeError(QuasiError):
    """ Raised when the types of arguments passed to a function are incorrect"""


class QuasiArityError(QuasiError):
    """ Raised when the number of arguments passed to a function is incorrect"""
