"""
Cluster Transfer

Copies the records of one cluster's admin API into another cluster.

Supports:
- Version and plugin compatibility checks before any write
- Lazy traversal of cursor-paginated collections
- Idempotent replay (records already present are skipped on conflict)
- Relation sub-collections migrated per parent record
- Custom migration plans loaded from JSON
"""

__version__ = "0.1.0"
