"""Student roster bulk import: spreadsheet validation, duplicate reconciliation and commit."""

__version__ = "0.1.0"
