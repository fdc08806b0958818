"""Helpers for Minecraft Bedrock Script API add-ons: versions, manifests, rule checks and API diffs."""

__version__ = "0.1.0"