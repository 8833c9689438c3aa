"""
Catalog exercise value object.

The exercise catalog is owned by the persistence collaborator; plan rows
reference catalog entries by ``catalog_id`` once resolved.
"""

from pydantic import BaseModel, Field


class CatalogExercise(BaseModel):
    """An entry of the shared exercise library."""

    catalog_id: str = Field(..., min_length=1, description="Catalog exercise id")
    name: str = Field(..., min_length=1, description="Exercise name")
    motion: str = Field(default="", description="Movement pattern")
    target_area: str = Field(default="", description="Targeted muscle area")

    model_config = {"frozen": True}
