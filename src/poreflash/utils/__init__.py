"""Utility constants and type aliases."""
