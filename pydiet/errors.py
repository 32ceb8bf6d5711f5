from typing import Optional


class DietError(ValueError):
    """
    Base class of all Diet compile errors.

    Carries the template file and line number the error originated from. Helpers that
    do not know their position raise without one; the compiler fills it in with
    `locate` on the way out.
    """

    def __init__(self, message: str, file: Optional[str] = None, line: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.file = file
        self.line = line

    def locate(self, file: str, line: int) -> 'DietError':
        """Attaches a template position unless the error already has one."""
        if self.line is None:
            self.file = file
            self.line = line
        return self

    def __str__(self) -> str:
        if self.line is None:
            return f"Diet Compile Error: {self.message}"
        return f"Diet Compile Error ({self.file} line {self.line}): {self.message}"


class MalformedIndentation(DietError):
    """Inconsistent indent characters/width, or a line nested more than one level deeper."""


class DietSyntaxError(DietError):
    """Malformed tag, attribute or interpolation grammar, or an unsupported keyword."""


class UnresolvedReferenceError(DietError):
    """An include/extends target or a filter name that cannot be found."""


class UnsupportedFeatureError(DietError):
    """A documented gap of the compiler, such as append blocks with default content."""
