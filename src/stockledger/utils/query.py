"""Read helpers shared by handlers and routes."""

from protean.exceptions import ObjectNotFoundError

# Repository queries are paginated by default. Ledger sums must see every
# row, so reads go through these helpers with an explicit ceiling.
ROW_LIMIT = 1_000_000


def fetch_all(repository, **filters) -> list:
    """Return every record in ``repository`` matching ``filters``."""
    query = repository._dao.query
    if filters:
        query = query.filter(**filters)
    return query.limit(ROW_LIMIT).all().items


def fetch_one(repository, identifier):
    """Return the record with ``identifier`` or ``None``."""
    try:
        return repository.get(identifier)
    except ObjectNotFoundError:
        return None
