"""Configuration, timezone and logging infrastructure shared by both processes."""
