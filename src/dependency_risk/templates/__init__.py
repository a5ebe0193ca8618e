"""Bundled Jinja2 templates for the reporters."""
