"""
Exceptions raised by the pizza sales analytics layer.
"""


class PizzaAnalyticsError(Exception):
    """Base class for all analytics errors."""


class DataIntegrityError(PizzaAnalyticsError):
    """Input tables violate the data model."""


class SchemaError(DataIntegrityError):
    """A required column is missing from an input table."""

    def __init__(self, table, missing_columns):
        self.table = table
        self.missing_columns = list(missing_columns)
        super().__init__(
            f"Table '{table}' is missing required columns: {', '.join(self.missing_columns)}"
        )


class InvalidValueError(DataIntegrityError):
    """A key, date or time value could not be parsed."""


class DuplicateKeyError(DataIntegrityError):
    """A primary key appears more than once in a table."""

    def __init__(self, table, key, examples):
        self.table = table
        self.key = key
        self.examples = list(examples)
        super().__init__(
            f"Table '{table}' has duplicate values for primary key '{key}': {self.examples}"
        )


class InvalidQuantityError(DataIntegrityError):
    """An order detail carries a quantity that is not a positive integer."""


class InvalidPriceError(DataIntegrityError):
    """A pizza carries a negative or unparseable price."""


class MissingReferenceError(DataIntegrityError):
    """A foreign key does not resolve during the join."""

    def __init__(self, relationship, orphaned_count, examples):
        self.relationship = relationship
        self.orphaned_count = orphaned_count
        self.examples = list(examples)
        super().__init__(
            f"{orphaned_count} values in {relationship} have no match "
            f"(examples: {self.examples})"
        )


class EmptyInputError(PizzaAnalyticsError):
    """An aggregate has no defined value on the given rows."""
