"""Password hashing with bcrypt."""

import bcrypt

# bcrypt only looks at the first 72 bytes; longer secrets are rejected at signup
MAX_PASSWORD_BYTES = 72


def hash_password(raw: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(raw.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(raw: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(raw.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or over-long candidate
        return False
