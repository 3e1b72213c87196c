"""PyQt5 dashboard: map widget and main window."""
