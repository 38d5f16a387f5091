"""Exception hierarchy shared by the effect pipeline."""

from __future__ import annotations


class ImgverbError(Exception):
    """Base class for every error the library raises on purpose."""


class ConfigError(ImgverbError):
    """Invalid or out-of-domain configuration, detected before any frame runs."""


class ParseError(ConfigError):
    """Channel expression source text could not be parsed."""

    def __init__(self, message: str, text: str, channel: str | None = None):
        self.text = text
        self.channel = channel
        super().__init__(message)


class EvaluationError(ImgverbError):
    """A channel expression failed to evaluate.

    ``expression`` is the failing subexpression. ``index`` is the position of
    the first offending element when the bindings were arrays (None for scalar
    bindings). The compositor fills in ``channel``, ``source`` and ``pixel``
    before re-raising.
    """

    def __init__(
        self,
        message: str,
        expression: str,
        index: tuple[int, ...] | None = None,
        channel: str | None = None,
        source: str | None = None,
        pixel: tuple[int, int] | None = None,
    ):
        self.message = message
        self.expression = expression
        self.index = index
        self.channel = channel
        self.source = source
        self.pixel = pixel
        super().__init__(str(self))

    def __str__(self) -> str:
        text = f"{self.message} in '{self.expression}'"
        if self.channel is not None:
            text = f"{self.channel} channel expression '{self.source}': {text}"
        if self.pixel is not None:
            text += f" at pixel x = {self.pixel[0]}, y = {self.pixel[1]}"
        return text
