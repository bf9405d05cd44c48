"""Project access components."""
