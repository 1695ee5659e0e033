"""NexusAdmin: role-based admin backend.

Authenticates users, runs the invite-based onboarding flow, and exposes
role-gated CRUD over users and projects.
"""

__version__ = "0.1.0"
