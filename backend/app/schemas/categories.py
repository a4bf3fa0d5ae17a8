from pydantic import BaseModel, Field
from typing import List

class CustomCategoryCreate(BaseModel):
    category: str = Field(..., min_length=1)

class CustomCategoryResponse(BaseModel):
    category: str

class CategoryListResponse(BaseModel):
    categories: List[str]
