"""Invite token generation.

Learn: secrets.token_hex(32) gives 256 bits of entropy rendered as 64
lowercase hex chars. Guessing one is computationally infeasible, so the
token itself is the capability: whoever holds the link may register.
Uniqueness is still backed by the invites.token unique index.

Incoming tokens are only length-checked. Anything 64 chars long is
looked up, and a miss is reported as an invalid invitation.
"""

import secrets

INVITE_TOKEN_BYTES = 32
INVITE_TOKEN_LENGTH = INVITE_TOKEN_BYTES * 2


def generate_invite_token() -> str:
    return secrets.token_hex(INVITE_TOKEN_BYTES)
