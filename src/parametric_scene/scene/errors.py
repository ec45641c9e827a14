"""Scene pipeline exceptions.

Every error raised while reading, parsing or interpreting a scene derives
from SceneError, so callers can catch the whole family in one place:

    SceneError
    ├── SceneSyntaxError          malformed token stream
    ├── SceneLoadError            malformed or unsupported form
    │   ├── MissingPropertyError
    │   └── UnknownGeometryTypeError
    └── SceneIOError              file could not be read
"""


class SceneError(Exception):
    """Base class for all scene pipeline errors."""


class SceneSyntaxError(SceneError):
    """The source text is not a well-formed S-expression stream.

    Attributes:
        message: Description of the condition, without location.
        line: 1-based line of the offending token.
        column: 1-based column of the offending token.
        filename: Source file name, if known.
    """

    def __init__(self, message: str, line: int, column: int, filename: str | None = None) -> None:
        self.message = message
        self.line = line
        self.column = column
        self.filename = filename
        location = f"{filename}:{line}:{column}" if filename else f"line {line}, column {column}"
        super().__init__(f"{location}: {message}")


class SceneLoadError(SceneError):
    """A form is well-formed syntactically but cannot be interpreted."""


class MissingPropertyError(SceneLoadError):
    """A geometry form lacks a required named property.

    Attributes:
        property_name: The missing property (first accepted spelling).
        form: Head symbol of the form being interpreted.
    """

    def __init__(self, property_name: str, form: str) -> None:
        self.property_name = property_name
        self.form = form
        super().__init__(f"Missing required property: {property_name} (in {form})")


class UnknownGeometryTypeError(SceneLoadError):
    """A geometry expression uses an unrecognized head symbol."""

    def __init__(self, symbol: str) -> None:
        self.symbol = symbol
        super().__init__(f"Unknown geometry type: {symbol}")


class SceneIOError(SceneError):
    """A top-level or included file could not be opened.

    Attributes:
        path: The resolved path that failed.
    """

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Cannot open file: {path}")
