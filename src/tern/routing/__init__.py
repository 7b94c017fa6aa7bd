"""Routing — ordered regex route table with first-match-wins dispatch.

Routes are registered during setup and frozen into an immutable
lookup structure on the first dispatch.
"""
