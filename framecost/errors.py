"""
The single error kind raised by the estimation engine.

InvalidInput is always raised BEFORE any arithmetic — the engine validates
the whole parameter set first, then computes. Callers (the API layer, a form)
catch it and show a message for the offending field.
"""

# Constraint codes carried by InvalidInput
MISSING = "missing"
NON_NUMERIC = "non_numeric"
NON_FINITE = "non_finite"
NEGATIVE = "negative"
NOT_INTEGER = "not_integer"
LESS_THAN_ONE = "less_than_one"

_MESSAGES = {
    MISSING: "is required",
    NON_NUMERIC: "must be a number",
    NON_FINITE: "must be a finite number",
    NEGATIVE: "must not be negative",
    NOT_INTEGER: "must be a whole number",
    LESS_THAN_ONE: "must be at least 1",
}


class InvalidInput(ValueError):
    """A required field is missing, non-numeric, negative, or out of range."""

    def __init__(self, field: str, constraint: str, message: str = None):
        self.field = field
        self.constraint = constraint
        self.message = message or "%s %s" % (field, _MESSAGES.get(constraint, "is invalid"))
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "field": self.field,
            "constraint": self.constraint,
            "message": self.message,
        }
