"""Recall: view-state controller and content service for a practice SPA."""

__version__ = "1.0.0"
