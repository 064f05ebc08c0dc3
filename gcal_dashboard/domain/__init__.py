"""Event formatting and page rendering."""
