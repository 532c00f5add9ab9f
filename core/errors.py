class CircuitValidationError(ValueError):
    """Raised when a circuit specification cannot be calculated at all."""

    def __init__(self, message: str, field: str = ""):
        super().__init__(message)
        self.field = field


class CapabilityExceededError(CircuitValidationError):
    """Input lies outside what the tabulated insulation class can handle."""


class TableLookupError(CircuitValidationError, LookupError):
    """A key is missing from a reference table (never silently defaulted)."""

    def __init__(self, table: str, key):
        super().__init__(f"{table}: no entry for {key!r}", field=table)
        self.table = table
        self.key = key
