"""
HTTP routes for the recipe backend API.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional, Union
from uuid import uuid4

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import TypeAdapter
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile as StarletteUploadFile

from recipe_backend.config import Settings
from recipe_backend.db import RecipeStore
from recipe_backend.dependencies import (
    get_app_settings,
    get_recipe_store,
    get_storage_client,
)
from recipe_backend.errors import (
    NotFoundError,
    PayloadTooLargeError,
    UpstreamFailure,
    ValidationError,
)
from recipe_backend.schemas import (
    ErrorResponse,
    ListRecipesResponse,
    MessageResponse,
    RecipeDetailResponse,
    RecipeStep,
    RecipeSummary,
    StepInput,
    UploadRecipeResponse,
)
from recipe_backend.storage import BlobStorageClient
from recipe_backend.uploads import SpooledUpload, spool_upload

logger = logging.getLogger(__name__)

router = APIRouter()

VIDEO_CONTENT_TYPE = "video/mp4"

_steps_adapter = TypeAdapter(list[StepInput])


def _parse_steps(raw: str) -> list[StepInput]:
    return _steps_adapter.validate_json(raw)


@router.post(
    "/upload-recipe",
    response_model=UploadRecipeResponse,
    responses={
        400: {"model": MessageResponse},
        413: {"model": MessageResponse},
        500: {"model": ErrorResponse},
    },
)
async def upload_recipe(
    title: Optional[str] = Form(None),
    creator_id: Optional[str] = Form(None),
    steps: Optional[str] = Form(None),
    duration: Optional[str] = Form(None),
    video: Union[UploadFile, str, None] = File(None),
    store: RecipeStore = Depends(get_recipe_store),
    storage: BlobStorageClient = Depends(get_storage_client),
    settings: Settings = Depends(get_app_settings),
):
    """
    Store the uploaded video, then write the recipe row and one row per step.

    The recipe and step writes are independent; a failure part way through
    leaves the blob and any rows already written in place.
    """
    if not title or not creator_id or not steps or not duration:
        raise ValidationError("All fields are required.")
    if not isinstance(video, StarletteUploadFile) or not video.filename:
        raise ValidationError("Video file is required.")

    spooled: SpooledUpload | None = None
    try:
        spooled = await spool_upload(
            video, settings.upload_dir, settings.max_upload_bytes
        )
        video_data = await run_in_threadpool(spooled.read_bytes)
        video_url = await run_in_threadpool(
            storage.upload, spooled.original_name, video_data, VIDEO_CONTENT_TYPE
        )

        recipe_id = str(uuid4())
        await run_in_threadpool(
            store.create_recipe, recipe_id, creator_id, title, video_url, duration
        )

        step_inputs = _parse_steps(steps)
        await asyncio.gather(
            *(
                run_in_threadpool(
                    store.add_step,
                    str(uuid4()),
                    recipe_id,
                    number,
                    step.step_title,
                    step.instructions,
                )
                for number, step in enumerate(step_inputs, start=1)
            )
        )
    except PayloadTooLargeError:
        raise
    except Exception as exc:
        raise UpstreamFailure("Failed to upload recipe", exc) from exc
    finally:
        if spooled is not None:
            spooled.remove()

    logger.info(
        "Uploaded recipe %s (%d steps, %d bytes)",
        recipe_id,
        len(step_inputs),
        spooled.size,
    )
    return UploadRecipeResponse(
        message="Recipe uploaded successfully!", recipeId=recipe_id
    )


@router.get(
    "/recipes",
    response_model=ListRecipesResponse,
    responses={500: {"model": ErrorResponse}},
)
def list_recipes(store: RecipeStore = Depends(get_recipe_store)):
    try:
        records = store.list_recipes()
    except Exception as exc:
        raise UpstreamFailure("Failed to fetch recipes", exc) from exc
    return ListRecipesResponse(
        recipes=[RecipeSummary(**record.as_dict()) for record in records]
    )


@router.get(
    "/recipes/{recipe_id}",
    response_model=RecipeDetailResponse,
    responses={404: {"model": MessageResponse}, 500: {"model": ErrorResponse}},
)
def get_recipe(recipe_id: str, store: RecipeStore = Depends(get_recipe_store)):
    try:
        record = store.get_recipe(recipe_id)
        steps = store.list_steps(recipe_id) if record else []
    except Exception as exc:
        raise UpstreamFailure("Failed to fetch recipe details", exc) from exc
    if not record:
        raise NotFoundError("Recipe not found")
    return RecipeDetailResponse(
        recipe=RecipeSummary(**record.as_dict()),
        steps=[RecipeStep(**step.as_dict()) for step in steps],
    )
