"""
warden — governance core for a terminal AI assistant.

File: src/warden/__init__.py

Purpose
- Package root. Hosts the command-safety policy engine (``warden.policy``) and
  the quality-regression eval harness (``warden.evaluation``).

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
