"""URL 슬러그 생성 유틸리티.

URL slug helpers for news articles.
"""

import re
import secrets
import string

_NON_WORD = re.compile(r"[^\w\s-]")
_SEPARATORS = re.compile(r"[\s_-]+")
_SUFFIX_ALPHABET: str = string.digits + string.ascii_lowercase


def slugify(text: str) -> str:
    """제목을 URL 슬러그로 변환합니다.

    Lowercase, drop non-word characters, collapse whitespace, underscores
    and hyphens into a single "-", then trim leading/trailing "-".

    Example:
        slugify("Hello,  World_ 2024!")  # "hello-world-2024"
    """
    slug: str = _NON_WORD.sub("", text.lower().strip())
    slug = _SEPARATORS.sub("-", slug)
    return slug.strip("-")


def random_suffix(length: int = 6) -> str:
    """base36 무작위 접미사 (Random base36 suffix for taken slugs)."""
    return "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(length))
