"""
Services module for roster business logic.

This module organizes services into:
- imports: bulk player import pipeline (column mapping, file reading, row
  parsing, validation, duplicate detection, orchestration, templates)
"""
