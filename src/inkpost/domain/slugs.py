import random
import re
from collections.abc import Callable

_DISALLOWED = re.compile(r"[^\w\s-]", re.ASCII)
_WHITESPACE = re.compile(r"\s+")
_DASHES = re.compile(r"-+")


def slugify(text: str) -> str:
    """Derive a URL slug from a post title."""
    slug = text.lower().strip()
    slug = _DISALLOWED.sub("", slug)
    slug = _WHITESPACE.sub("-", slug)
    return _DASHES.sub("-", slug).strip("-")


def disambiguate_slug(base: str, is_taken: Callable[[str], bool], max_suffix: int = 1000) -> str:
    """
    Return `base` if free, otherwise the first free `base-N` for N >= 2.

    Raises ValueError when no free suffix is found below max_suffix.
    """
    if not is_taken(base):
        return base
    for n in range(2, max_suffix):
        candidate = f"{base}-{n}"
        if not is_taken(candidate):
            return candidate
    raise ValueError(f"No free slug derived from '{base}'")


_NON_ALNUM = re.compile(r"[^a-z0-9]")


def generate_username(
    email: str,
    is_taken: Callable[[str], bool],
    rand: Callable[[], int] | None = None,
) -> str:
    """
    `<email local part, alphanumerics only><4 random digits>`.

    On a collision a counter is appended to the candidate.
    """
    local = _NON_ALNUM.sub("", email.split("@", 1)[0].lower()) or "user"
    suffix = rand() if rand is not None else random.randint(1000, 9999)
    base = f"{local}{suffix:04d}"
    candidate = base
    counter = 1
    while is_taken(candidate):
        candidate = f"{base}{counter}"
        counter += 1
    return candidate


class SlugTakenError(ValueError):
    """A post write lost the race for its slug to another post."""

    def __init__(self, slug: str):
        super().__init__(f"Slug already taken: {slug}")
        self.slug = slug


class UsernameTakenError(ValueError):
    def __init__(self, username: str):
        super().__init__(f"Username already taken: {username}")
        self.username = username
