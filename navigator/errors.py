# navigator/errors.py
from __future__ import annotations


class NavigatorError(Exception):
    """Base for every failure the pipeline turns into an error disposition."""

    is_config_error = False


# -------------------------------
# Catalog failures
# -------------------------------
class CatalogError(NavigatorError):
    pass


class FetchFailure(CatalogError):
    def __init__(self, status: int | None, body: str = ""):
        self.status = status
        self.body = (body or "")[:200]
        super().__init__(f"sheet_fetch_failed (status={status})")


class EmptyCatalogFailure(CatalogError):
    is_config_error = True

    def __init__(self) -> None:
        super().__init__("sheet_empty")


class MissingColumnFailure(CatalogError):
    is_config_error = True

    def __init__(self, column: str):
        self.column = column
        super().__init__(f"missing_column:{column}")


# -------------------------------
# Collaborator failures
# -------------------------------
class CollaboratorError(NavigatorError):
    pass


class ClassifierFailure(CollaboratorError):
    pass


class RewriterFailure(CollaboratorError):
    pass
