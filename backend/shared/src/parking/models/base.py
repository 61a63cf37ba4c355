"""Base model shared by all parking entities.

Python code uses snake_case attributes; the wire format is camelCase
(``vehicleType``, ``durationRange``...). Both spellings are accepted on input.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class ParkingModel(BaseModel):
    """Pydantic base with camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )
