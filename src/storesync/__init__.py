"""storesync: keep a local, observable copy of a paginated remote collection."""

__version__ = "0.3.0"
