"""Failure kinds raised by the resolution and synthesis stages."""

from typing import Iterable, List


class DeployError(Exception):
    """Base class for fatal pipeline failures."""


class SelectionError(DeployError):
    pass


class NoDisplaysFound(SelectionError):
    def __init__(self, mode: str):
        self.mode = mode
        super().__init__(f"No active displays detected; cannot apply mode '{mode}'.")


class NoMatchingDisplay(SelectionError):
    def __init__(self, requested: str, available: Iterable[str]):
        self.requested = requested
        self.available: List[str] = list(available)
        super().__init__(
            f"No display matches {requested}. "
            f"Available resolutions: {', '.join(self.available) or 'none'}"
        )


class InvalidResolution(SelectionError, ValueError):
    def __init__(self, text: str, available: Iterable[str] = ()):
        self.text = text
        self.available: List[str] = list(available)
        msg = f"Invalid resolution '{text}' (expected WIDTHxHEIGHT, e.g. 1920x1080)."
        if self.available:
            msg += f" Available resolutions: {', '.join(self.available)}"
        super().__init__(msg)


class InsufficientDisplays(SelectionError):
    def __init__(self, mode: str, count: int):
        self.mode = mode
        self.count = count
        super().__init__(
            f"Mode '{mode}' needs at least 2 displays, found {count}. "
            f"Use the primary or custom mode instead."
        )


class TemplateValidationFailed(DeployError):
    def __init__(self, template: str, problems: Iterable[str]):
        self.template = template
        self.problems: List[str] = list(problems)
        super().__init__(f"Template '{template}' is invalid: {'; '.join(self.problems)}")
