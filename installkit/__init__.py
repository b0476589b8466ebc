"""installkit - Installation and bootstrap orchestrator.

Provides:
- Readiness predicates for an installation target (lock, license, database)
- Seed template import and run-once migrations
- First administrator provisioning
"""

__version__ = "0.1.0"
