from fastapi import APIRouter, Depends
from pydantic import BaseModel

from healthlife.auth.dependencies import get_current_user
from healthlife.models.user import User

router = APIRouter(tags=["auth"])


class CurrentUserResponse(BaseModel):
    id: int
    email: str
    role: str
    first_name: str
    last_name: str

    class Config:
        from_attributes = True


@router.get("/me", response_model=CurrentUserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user
