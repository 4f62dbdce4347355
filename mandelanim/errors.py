from typing import Optional


class MandelanimError(Exception):
    """Base class for every error the renderer reports to the user."""


class ConfigurationError(MandelanimError, ValueError):
    pass


class ResourceError(MandelanimError, OSError):
    pass


class PaletteFormatError(ConfigurationError):
    def __init__(self, message: str, line_number: Optional[int] = None) -> None:
        if line_number is not None:
            message = f"{message} on line {line_number}"
        super().__init__(message)
        self.line_number = line_number


class OverlaySpecError(ConfigurationError):
    pass


class RenderError(MandelanimError, RuntimeError):
    pass
