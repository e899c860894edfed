from pydantic import BaseModel


class CamelModel(BaseModel):
    """Snake_case attributes on the Python side, camelCase keys on the wire"""

    class Config:
        populate_by_name = True
