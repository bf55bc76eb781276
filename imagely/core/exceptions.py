"""
Exceptions
==========

Exception hierarchy for render passes. Every error raised while resolving,
fetching, inlining or rendering derives from ImagelyError and is converted
into a RenderOutcome error at the renderer boundary.
"""


class ImagelyError(Exception):
    """Base exception for all imagely errors."""

    pass


class ConfigurationError(ImagelyError):
    """Raised when a render request or option value is invalid.

    Examples:
        - Unsupported destination extension
        - Non-positive viewport size
    """

    pass


class LoadError(ImagelyError):
    """Raised when URL navigation does not report a successful status."""

    pass


class AssetFetchError(ImagelyError):
    """Raised when a referenced script or stylesheet cannot be retrieved."""

    pass


class PayloadParseError(ImagelyError):
    """Raised when the JSON data payload cannot be read or parsed."""

    pass


class ProbeError(ImagelyError):
    """Raised when a rendered image cannot be inspected."""

    pass


class EngineError(ImagelyError):
    """Raised when the headless engine fails to start, load or capture."""

    pass
