"""
Database model registry.

Importing this module registers every table model with SQLModel's metadata,
which ``create_all()`` needs before it can create the schema.
"""

from igudar.models.property import Property  # noqa: F401
from igudar.models.investment import Investment  # noqa: F401
