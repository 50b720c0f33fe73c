from typing import Any

from ..documents.model import normalize_document, project_plain_text


def set_rich_text(entity: Any, field: str, value: Any) -> None:
    """
    Store a rich-text value and its plain-text shadow together.
    """
    document = normalize_document(value)
    setattr(entity, field, document)
    setattr(entity, f"{field}_text", project_plain_text(document))
