import re
import unicodedata
from typing import Optional


def slugify(value: str, separator: str = "-") -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    normalized = re.sub(r"[^\w\s-]", "", normalized.lower())
    return re.sub(r"[\s_-]+", separator, normalized).strip(separator)


def truncate_text(text: Optional[str], max_length: int) -> Optional[str]:
    if text is None or len(text) <= max_length:
        return text
    return text[:max_length - 3] + "..."
