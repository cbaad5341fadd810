from pwdlib import PasswordHash

# pwdlib's recommended profile (Argon2).
hasher = PasswordHash.recommended()


def hash_password(raw_password: str) -> str:
    return hasher.hash(raw_password)


def verify_password(raw_password: str, hashed_password: str | None) -> bool:
    if not raw_password or not hashed_password:
        return False
    return hasher.verify(raw_password, hashed_password)
