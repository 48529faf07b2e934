import re
import time
from typing import Optional


def slugify(name: str) -> str:
    slug = re.sub(r"\s+", "-", name.strip().lower())
    return re.sub(r"[^a-z0-9-]", "", slug)


def unique_slug(name: str, now_ms: Optional[int] = None) -> str:
    """Slugified name with an epoch-ms suffix, e.g. 'argan-oil-1700000000000'"""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{slugify(name)}-{now_ms}"
