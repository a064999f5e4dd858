"""Report output: terminal rendering and JSON export."""
