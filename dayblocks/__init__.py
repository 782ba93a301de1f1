"""
dayblocks - personal time-block scheduling core.

The domain lives in dayblocks.time_truth; persistence plumbing (paths, db,
schema, safe_sql) and observability sit alongside it.
"""

__version__ = "0.1.0"
