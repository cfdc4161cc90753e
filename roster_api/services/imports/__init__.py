"""
Bulk Player Import Service

Turns uploaded roster files into validated player rows and commits them
to a club in a single transaction.

Key components:
- Column mapping: Resolve free-form headers to canonical player fields
- File reader / row parser: Read CSV and XLSX into typed rows
- Validator / duplicate detector: Per-row errors and duplicate warnings
- Orchestrator: Validate, revalidate, commit, and record the import audit
"""
