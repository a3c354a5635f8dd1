from fastapi import APIRouter
from pydantic import BaseModel, Field

router = APIRouter(tags=['bmi'])

BMI_CATEGORIES = (
    (18.5, 'Underweight'),
    (25.0, 'Normal weight'),
    (30.0, 'Overweight'),
)


class BmiRequest(BaseModel):
    height_cm: float = Field(gt=0, le=300)
    weight_kg: float = Field(gt=0, le=700)


class BmiResponse(BaseModel):
    bmi: float
    category: str


def calculate_bmi(height_cm: float, weight_kg: float) -> float:
    height_m = height_cm / 100
    return round(weight_kg / (height_m * height_m), 1)


def bmi_category(bmi: float) -> str:
    for upper_bound, category in BMI_CATEGORIES:
        if bmi < upper_bound:
            return category
    return 'Obese'


@router.post('', response_model=BmiResponse)
def compute_bmi(data: BmiRequest):
    bmi = calculate_bmi(data.height_cm, data.weight_kg)
    return BmiResponse(bmi=bmi, category=bmi_category(bmi))
