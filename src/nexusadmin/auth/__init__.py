"""Authentication and authorization.

Learn: Three leaf utilities plus one gate:
1. password.py       → bcrypt hash/verify (off the event loop)
2. invite_tokens.py  → 64-char hex invite capabilities
3. jwt.py            → signed, stateless session tokens
4. dependencies.py   → per-request identity resolution + role checks

Everything that composes these (login, invites, registration) lives in
services/auth_service.py.
"""
