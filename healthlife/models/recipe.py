"""Recipe model definitions."""

from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from healthlife.database import Base


class Recipe(Base):
    """A recipe published by staff. price is stored in cents."""
    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    image = Column(String)
    price = Column(Integer, nullable=False, default=0)
    cooking_time = Column(String, nullable=False)
    author_id = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime, default=datetime.now)

    author = relationship("User")
    ingredients = relationship(
        "Ingredient",
        back_populates="recipe",
        order_by="Ingredient.id",
        cascade="all, delete-orphan",
    )
    steps = relationship(
        "RecipeStep",
        back_populates="recipe",
        order_by="RecipeStep.position",
        cascade="all, delete-orphan",
    )


class Ingredient(Base):
    __tablename__ = "recipe_ingredients"

    id = Column(Integer, primary_key=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    quantity = Column(String, nullable=False)

    recipe = relationship("Recipe", back_populates="ingredients")


class RecipeStep(Base):
    __tablename__ = "recipe_steps"

    id = Column(Integer, primary_key=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    content = Column(Text, nullable=False)

    recipe = relationship("Recipe", back_populates="steps")
