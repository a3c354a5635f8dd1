"""Allergy reference data."""

from sqlalchemy import Column, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from healthlife.database import Base


class Allergy(Base):
    """A known allergy patients can look up."""
    __tablename__ = "allergies"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)

    solutions = relationship(
        "AllergySolution",
        back_populates="allergy",
        order_by="AllergySolution.id",
        cascade="all, delete-orphan",
    )


class AllergySolution(Base):
    __tablename__ = "allergy_solutions"

    id = Column(Integer, primary_key=True)
    allergy_id = Column(Integer, ForeignKey("allergies.id"), nullable=False, index=True)
    solution = Column(Text, nullable=False)

    allergy = relationship("Allergy", back_populates="solutions")
