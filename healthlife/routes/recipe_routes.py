from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from healthlife.auth.dependencies import get_current_user
from healthlife.database import DATABASE_UNAVAILABLE_DETAIL, get_db
from healthlife.models.recipe import Recipe
from healthlife.models.user import User

router = APIRouter(tags=['recipes'])


class IngredientResponse(BaseModel):
    name: str
    quantity: str


class RecipeStepResponse(BaseModel):
    position: int
    content: str


class RecipeSummaryResponse(BaseModel):
    id: int
    title: str
    description: str
    image: str | None = None
    price: int
    cooking_time: str
    author_name: str | None = None
    ingredient_count: int
    step_count: int


class RecipeResponse(RecipeSummaryResponse):
    ingredients: list[IngredientResponse]
    steps: list[RecipeStepResponse]


def _summary_fields(recipe: Recipe) -> dict:
    return {
        'id': recipe.id,
        'title': recipe.title,
        'description': recipe.description or '',
        'image': recipe.image,
        'price': recipe.price,
        'cooking_time': recipe.cooking_time,
        'author_name': recipe.author.full_name if recipe.author else None,
        'ingredient_count': len(recipe.ingredients),
        'step_count': len(recipe.steps),
    }


@router.get('', response_model=list[RecipeSummaryResponse])
def list_recipes(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        recipes = db.query(Recipe).options(
            selectinload(Recipe.author),
            selectinload(Recipe.ingredients),
            selectinload(Recipe.steps),
        ).order_by(Recipe.title.asc()).all()
        return [RecipeSummaryResponse(**_summary_fields(recipe)) for recipe in recipes]
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('/{recipe_id}', response_model=RecipeResponse)
def get_recipe(
    recipe_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        recipe = db.query(Recipe).filter(Recipe.id == recipe_id).first()
        if recipe is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Recipe not found.',
            )

        return RecipeResponse(
            **_summary_fields(recipe),
            ingredients=[
                IngredientResponse(name=ingredient.name, quantity=ingredient.quantity)
                for ingredient in recipe.ingredients
            ],
            steps=[RecipeStepResponse(position=step.position, content=step.content) for step in recipe.steps],
        )
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc
