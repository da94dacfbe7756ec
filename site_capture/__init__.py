"""
SiteCapture package initializer.
Defines package version and exposes CLI.
"""
__version__ = "0.1.0"

# Expose CLI entry point; the name must not shadow the site_capture.cli module
from .cli import cli as main_cli
