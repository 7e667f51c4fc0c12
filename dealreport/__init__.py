"""
CRM Deals Report Export

Streams deals out of the CRM database one at a time and writes them to a
delimited file, enriching each deal with columns computed by pluggable
property resolvers.

Supports:
- Direct deal fields with optional column renaming
- Resolvers with a one-time preload of reference data
- Deterministic column ordering across runs
- Per-resolver failure isolation (failed cells carry an error marker)
- Error rows for unusable records without aborting the export
"""

__version__ = "0.1.0"
