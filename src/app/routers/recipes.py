# src/app/routers/recipes.py
from __future__ import annotations

from fastapi import APIRouter, Depends, status

from src.app.deps import get_current_user, get_recipe_service
from src.app.domain.models import User
from src.app.schemas.recipes import LinkIn, RecipeCreate, RecipeResponse, RecipeUpdate
from src.app.schemas.recommendations import MessageResponse
from src.app.services.recipe_service import RecipeService

router = APIRouter(prefix="/recipes", tags=["recipes"])


@router.post("", response_model=RecipeResponse, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    payload: RecipeCreate,
    user: User = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    recipe = service.create_recipe(
        owner_id=user.id,
        description=payload.description,
        ingredients=[line.model_dump() for line in payload.ingredients],
        steps=[step.model_dump() for step in payload.steps],
        links=[link.model_dump() for link in payload.links],
        cover_image=payload.coverImage,
    )
    return RecipeResponse(**recipe)


@router.get("", response_model=list[RecipeResponse])
async def list_recipes(
    user: User = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> list[RecipeResponse]:
    return [RecipeResponse(**recipe) for recipe in service.list_recipes()]


@router.get("/{recipe_id}", response_model=RecipeResponse)
async def get_recipe(
    recipe_id: str,
    user: User = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    return RecipeResponse(**service.get_recipe(recipe_id))


@router.put("/{recipe_id}", response_model=RecipeResponse)
async def update_recipe(
    recipe_id: str,
    payload: RecipeUpdate,
    user: User = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    provided = payload.model_dump(exclude_unset=True)
    changes = {}
    if "description" in provided:
        changes["description"] = payload.description
    if "ingredients" in provided:
        changes["ingredients"] = provided["ingredients"]
    if "steps" in provided:
        changes["steps"] = provided["steps"]
    if "coverImage" in provided:
        changes["cover_image"] = payload.coverImage
    return RecipeResponse(**service.update_recipe(recipe_id, changes))


@router.delete("/{recipe_id}", response_model=MessageResponse)
async def delete_recipe(
    recipe_id: str,
    user: User = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> MessageResponse:
    service.delete_recipe(recipe_id)
    return MessageResponse(message="Recipe deleted")


@router.post("/{recipe_id}/links", response_model=RecipeResponse)
async def add_recipe_link(
    recipe_id: str,
    payload: LinkIn,
    user: User = Depends(get_current_user),
    service: RecipeService = Depends(get_recipe_service),
) -> RecipeResponse:
    return RecipeResponse(**service.add_link(recipe_id, payload.url, payload.description))
