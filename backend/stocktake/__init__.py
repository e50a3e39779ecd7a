"""Stocktake — session-scoped inventory scan tracker with spreadsheet export."""
