"""
Full-Text Search Index

SQLite FTS5 virtual table holding one row per arc or thing. Only ``title``
and ``content`` are tokenized; the other columns are stored for filtering
and for building results. Column order matters: ``snippet()`` addresses
columns by position and ``content`` is column 4.
"""

SEARCH_INDEX_TABLE = "search_index_fts"

CREATE_SEARCH_INDEX = f"""
CREATE VIRTUAL TABLE IF NOT EXISTS {SEARCH_INDEX_TABLE} USING fts5(
    type UNINDEXED,
    entity_id UNINDEXED,
    campaign_id UNINDEXED,
    title,
    content,
    slug UNINDEXED
)
"""
