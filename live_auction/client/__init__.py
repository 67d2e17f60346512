"""Client-side helpers for consuming the auction room."""

from .reconcile import LiveView, fetch_snapshot

__all__ = ["LiveView", "fetch_snapshot"]
