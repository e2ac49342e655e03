"""
Ingest component port definitions.
"""

from __future__ import annotations

from redirector.core.ports.store import RuleStorePort, VersionStorePort

__all__ = ["RuleStorePort", "VersionStorePort"]
