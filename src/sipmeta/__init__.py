"""
sipmeta — archival Submission Information Package builder

File: src/sipmeta/__init__.py

Purpose
- Package root. Builds per-object SIP folders (metadata.json, manifest.json,
  logs/) as JSON-LD documents with generated ``@context`` blocks.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
