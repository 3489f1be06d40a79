"""
Pydantic schemas for the recipe backend.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict


class StepInput(BaseModel):
    """One element of the JSON-encoded ``steps`` form field."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    step_title: Optional[str] = None
    instructions: Optional[str] = None


class UploadRecipeResponse(BaseModel):
    message: str
    recipeId: str


class RecipeSummary(BaseModel):
    recipe_id: str
    title: str
    creator_id: str
    video_url: str
    duration: str
    created_at: datetime


class RecipeStep(BaseModel):
    step_number: int
    instructions: Optional[str] = None
    step_title: Optional[str] = None


class ListRecipesResponse(BaseModel):
    recipes: list[RecipeSummary]


class RecipeDetailResponse(BaseModel):
    recipe: RecipeSummary
    steps: list[RecipeStep]


class MessageResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    message: str
    error: str
