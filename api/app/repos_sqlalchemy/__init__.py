"""SQLAlchemy-backed repository implementations."""

from .tables_repo_sql import TablesRepoSQL, to_record

__all__ = ["TablesRepoSQL", "to_record"]
