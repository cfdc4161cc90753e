"""Club roster player import API."""
