"""
Optional Qt adapters (requires the [gui] extra: PySide6).
"""
