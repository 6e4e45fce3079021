"""SheetLens - find/replace and selection aggregates for a spreadsheet editor."""

__version__ = "0.1.0"
