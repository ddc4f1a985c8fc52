"""Custom errors with tracking IDs."""

from utils.timestamp import format_timestamp


def _tracking_id():
    # Imported late: the identifier modules raise these errors themselves.
    from identifiers.ksuid import fast_ksuid
    return str(fast_ksuid())


class IdentifierError(Exception):
    """Base error with unique ID and timestamp for tracking."""

    def __init__(self, message, context=None, cause=None):
        super().__init__(message)
        self.error_id = _tracking_id()
        self.timestamp = format_timestamp()
        self.context = context or {}
        self.cause = cause

    def __str__(self):
        return f"[{self.error_id}] {super().__str__()}"

    def to_dict(self):
        return {
            "error_id": self.error_id,
            "timestamp": self.timestamp,
            "type": type(self).__name__,
            "msg": self.args[0] if self.args else "",
            "context": self.context,
        }


class ConfigurationError(IdentifierError, ValueError):
    """Invalid bit widths, bases or configuration values."""

    def __init__(self, message, setting=None, **kwargs):
        context = kwargs.pop("context", {})
        if setting:
            context["setting"] = setting
        super().__init__(message, context=context, **kwargs)


class FormatError(IdentifierError, ValueError):
    """Malformed string or byte input for an identifier format."""

    def __init__(self, message, value=None, format=None, **kwargs):
        context = kwargs.pop("context", {})
        if value is not None:
            context["value"] = value if isinstance(value, str) else repr(value)
        if format:
            context["format"] = format
        super().__init__(message, context=context, **kwargs)


class BoundaryError(IdentifierError, ArithmeticError):
    """Increment or decrement past the representable range."""

    def __init__(self, message, format=None, **kwargs):
        context = kwargs.pop("context", {})
        if format:
            context["format"] = format
        super().__init__(message, context=context, **kwargs)
