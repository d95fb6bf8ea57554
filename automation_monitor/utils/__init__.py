"""Utility helpers for the automation monitor."""
