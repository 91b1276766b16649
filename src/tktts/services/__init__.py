"""Speech synthesis services."""
