"""SQLModel table models — import here so metadata is populated."""

from igudar.models.property import Property  # noqa: F401
from igudar.models.investment import Investment  # noqa: F401
