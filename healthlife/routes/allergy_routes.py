from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from healthlife.auth.dependencies import get_current_user
from healthlife.database import DATABASE_UNAVAILABLE_DETAIL, get_db
from healthlife.models.allergy import Allergy
from healthlife.models.user import User

router = APIRouter(tags=['allergies'])


class AllergySolutionResponse(BaseModel):
    id: int
    solution: str


class AllergyResponse(BaseModel):
    id: int
    name: str
    solutions: list[AllergySolutionResponse]


def to_allergy_response(allergy: Allergy) -> AllergyResponse:
    return AllergyResponse(
        id=allergy.id,
        name=allergy.name,
        solutions=[
            AllergySolutionResponse(id=solution.id, solution=solution.solution)
            for solution in allergy.solutions
        ],
    )


@router.get('', response_model=list[AllergyResponse])
def list_allergies(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        allergies = db.query(Allergy).options(
            selectinload(Allergy.solutions),
        ).order_by(Allergy.name.asc()).all()
        return [to_allergy_response(allergy) for allergy in allergies]
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc


@router.get('/{allergy_id}', response_model=AllergyResponse)
def get_allergy(
    allergy_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        allergy = db.query(Allergy).filter(Allergy.id == allergy_id).first()
        if allergy is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Allergy not found.',
            )
        return to_allergy_response(allergy)
    except SQLAlchemyError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=DATABASE_UNAVAILABLE_DETAIL,
        ) from exc
