"""Extension surface: the background dispatcher and its per-tab log."""
