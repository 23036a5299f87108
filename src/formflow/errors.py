"""
Exceptions raised at the form-definition load boundary.

Evaluation code (conditions, rules, navigator, piping, calculator) never
raises these. It degrades to False / None / literal text instead.
"""


class FormflowError(Exception):
    """Base class for all formflow errors."""
    pass


class FormDefinitionError(FormflowError, ValueError):
    """Raised when a form definition cannot be loaded."""
    pass


class InvalidFormDefinition(FormDefinitionError):
    """Raised by strict validation when a loaded form has logic errors."""

    def __init__(self, issues):
        self.issues = list(issues)
        summary = "; ".join(issue.message for issue in self.issues)
        super().__init__(f"Invalid form definition: {summary}")
