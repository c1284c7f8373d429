import hashlib
import json
from typing import Any


def payload_hash(payload: Any) -> str:
    """Stable sha256 of a JSON-able payload; Decimals and enums hash by their text"""
    s = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(s.encode()).hexdigest()


def cache_key(prefix: str, payload: Any) -> str:
    return f"{prefix}:{payload_hash(payload)}"
