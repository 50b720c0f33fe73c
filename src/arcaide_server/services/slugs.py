import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """
    Convert a display name to a URL-safe slug.

    >>> slugify("Goblin Chief Klarg")
    'goblin-chief-klarg'
    """
    return _NON_ALNUM.sub("-", value.lower()).strip("-")
