"""
API routes.

This module organizes routes into:
- player_imports: bulk player import (validate, revalidate, commit, file import,
  import status, template download)
"""
