import math

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def normalize_pagination(page=None, page_size=None):
    """Coerce page to >= 1 and clamp page_size to 1..MAX_PAGE_SIZE."""
    try:
        page = int(page) if page is not None else 1
    except (TypeError, ValueError):
        page = 1
    try:
        page_size = int(page_size) if page_size is not None else DEFAULT_PAGE_SIZE
    except (TypeError, ValueError):
        page_size = DEFAULT_PAGE_SIZE

    page = max(1, page)
    page_size = min(MAX_PAGE_SIZE, max(1, page_size))
    return page, page_size


def build_pagination(page, page_size, total):
    total_pages = math.ceil(total / page_size) if total else 0
    return {
        "page": page,
        "page_size": page_size,
        "total": total,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1,
    }


def paginate(collection, query, page=None, page_size=None, sort=None, transform=None):
    """
    Run a paginated find() and return {"items": [...], "pagination": {...}}.
    `transform` is applied to each raw document.
    """
    page, page_size = normalize_pagination(page, page_size)
    total = collection.count_documents(query)

    cursor = collection.find(query)
    if sort:
        cursor = cursor.sort(sort)
    cursor = cursor.skip((page - 1) * page_size).limit(page_size)

    items = [transform(doc) if transform else doc for doc in cursor]
    return {"items": items, "pagination": build_pagination(page, page_size, total)}
