def format_error_key(*tokens) -> str:
    """
    Error keys are prefixed to error messages to make it easier to see where
    an error occurred, e.g. "my_customer - user@example.com - 42"
    """
    return " - ".join(str(t) for t in tokens)

class GSMError(Exception):
    """Base for everything raised by gwsm"""

class GSMAPIError(GSMError):
    """
    An upstream call failed terminally or ran out of retries.
    The message is "<err_key>: <error>" and the underlying error is kept
    as __cause__ and as .error.
    """
    def __init__(self, err_key: str, error: BaseException) -> None:
        super().__init__(f"{err_key}: {error}")
        self.err_key = err_key
        self.error = error

    @property
    def status(self) -> int|None:
        """HTTP status of the underlying error if it has one"""
        resp = getattr(self.error, "resp", None)
        return getattr(resp, "status", None)

class TransportNotSetError(GSMError):
    """A service was requested before a transport was injected"""

class ConfigError(GSMError):
    pass

class FlagError(GSMError):
    """Misuse of a command's flag schema, detected before any work starts"""

class FlagConflictError(FlagError):
    pass

class MissingRequiredFlagError(FlagError):
    pass

class ColumnIndexError(FlagError):
    pass

class RowParseError(FlagError):
    """A single CSV cell could not be coerced into its flag's type"""
    def __init__(self, flag: str, row: int, cell: str, reason: str) -> None:
        super().__init__(f"row {row}: cannot parse {flag}={cell!r}: {reason}")
        self.flag = flag
        self.row = row
        self.cell = cell
