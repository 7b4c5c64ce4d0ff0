import os
import re
import time

OBJECT_ID_RE = re.compile(r"^[0-9a-f]{24}$")


def generate_object_id():
    """Return a 24-character hex id: 4-byte timestamp followed by 8 random bytes."""
    return f"{int(time.time()) & 0xFFFFFFFF:08x}{os.urandom(8).hex()}"


def is_valid_object_id(value):
    return isinstance(value, str) and bool(OBJECT_ID_RE.match(value))


def validate_object_id(value, label="id"):
    from utils.errors import InvalidInput

    if not is_valid_object_id(value):
        raise InvalidInput(f"Invalid {label}")
    return value
