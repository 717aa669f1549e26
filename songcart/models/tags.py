"""Tag models"""

from pydantic import BaseModel


class PopularTag(BaseModel):
    tag: str
    count: int


class PopularTagsResponse(BaseModel):
    """Most used question-set tags"""
    tags: list[PopularTag]
