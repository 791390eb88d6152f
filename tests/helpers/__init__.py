"""
Test helper utilities for CLIMB testing.

Builders for synthetic reservations, visits, listing rows and surveys.
"""
