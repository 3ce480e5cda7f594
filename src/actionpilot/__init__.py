"""Summary: ActionPilot turns assistant replies into user-confirmable calendar and email actions.

Importance: Marks the package root for imports and packaging.
Alternatives: Use an implicit namespace package.
"""
