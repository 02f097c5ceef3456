"""Hotel booking reservation engine."""
