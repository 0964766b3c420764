# Task board: query language, audited state store, and import reconciliation
#
# Components:
#   schema.py      - Data model (Task, AuditEntry, BoardState, enums)
#   query.py       - Search query parser and filter evaluator
#   validator.py   - Structural validation of untrusted board snapshots
#   diff.py        - Field-level task diffs for the audit log
#   mutations.py   - Pure board commands (create/update/delete/move)
#   store.py       - Audited store with snapshot persistence
#   reconcile.py   - Import validation and duplicate-id reassignment
#   persistence.py - File / SQLite / in-memory snapshot backends
#   normalize.py   - Optional accent normalization pass
#   seed.py        - Seed dataset for empty or corrupt storage
#   summary.py     - Audit summaries and board statistics
#   config.py      - YAML configuration
