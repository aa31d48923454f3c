import re
import secrets

TOKEN_PATTERN = re.compile(r"^[a-f0-9]{64}$")


def generate_booking_token() -> str:
    # 32 random bytes -> 64 lowercase hex chars
    return secrets.token_hex(32)


def is_valid_booking_token(token: str | None) -> bool:
    return bool(token) and TOKEN_PATTERN.fullmatch(token) is not None
