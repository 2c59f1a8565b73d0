"""Convex environment sync - Python control plane.

Replaces the copy-and-paste shell recipes for Convex environment variables
and JWT key setup with a structured package: credential resolution, a
``KEY=VALUE`` source reader, a remote store client wrapping the Convex CLI,
an idempotent sync orchestrator, and a one-shot JWT key generator.
"""

try:
    from importlib.metadata import version

    __version__ = version("convex-envsync")
except Exception:
    __version__ = "0.0.0.dev0"

__all__ = ["__version__"]
