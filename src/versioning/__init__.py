"""Version range parsing and resolution."""
