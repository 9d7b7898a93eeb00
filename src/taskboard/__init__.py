"""Client-side task and session state synchronization for multi-project task boards."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
