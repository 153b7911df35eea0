"""Plugins shipped with storectl."""
