"""Paging over repository queries.

Protean caps every query at the aggregate's `limit` (100 rows by default),
so a batch read that must see every matching row walks the result set one
page at a time.
"""

PAGE_SIZE = 100


def fetch_all(query, page_size: int = PAGE_SIZE, order_by=("created_at", "id")) -> list:
    """Return every row the query matches, fetched `page_size` rows at a time."""
    query = query.order_by(list(order_by)).limit(page_size)

    items = []
    offset = 0
    while True:
        page = query.offset(offset).all()
        items.extend(page.items)
        if not page.has_next:
            return items
        offset += page_size
