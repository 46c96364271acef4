from fastapi import APIRouter, Depends

from mindcare.auth.dependencies import get_current_user
from mindcare.models.user import User
from mindcare.schemas import CurrentUserResponse

router = APIRouter(tags=['auth'])


@router.get("/me", response_model=CurrentUserResponse)
def me(current_user: User = Depends(get_current_user)):
    return CurrentUserResponse.model_validate(current_user)
