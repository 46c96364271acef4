from fastapi import APIRouter, Depends, Path
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from mindcare.core.errors import database_error
from mindcare.database import get_db
from mindcare.models.psychologist import Psychologist
from mindcare.scheduling import service
from mindcare.schemas import PsychologistResponse, UserProfileSummary, price_to_float

router = APIRouter(tags=['psychologists'])


def build_psychologist_response(psychologist: Psychologist) -> PsychologistResponse:
    return PsychologistResponse(
        id=psychologist.id,
        specialization=psychologist.specialization,
        experience=psychologist.experience,
        bio=psychologist.bio,
        price=price_to_float(psychologist.price),
        user=UserProfileSummary.model_validate(psychologist.user),
    )


@router.get('', response_model=list[PsychologistResponse])
def list_psychologists(db: Session = Depends(get_db)):
    try:
        psychologists = service.list_approved_psychologists(db)
        return [build_psychologist_response(psychologist) for psychologist in psychologists]
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc


@router.get('/{psychologist_id}', response_model=PsychologistResponse)
def get_psychologist(
    psychologist_id: int = Path(gt=0, le=service.MAX_PSYCHOLOGIST_ID),
    db: Session = Depends(get_db),
):
    try:
        psychologist = service.get_approved_psychologist(db, psychologist_id)
        return build_psychologist_response(psychologist)
    except SQLAlchemyError as exc:
        raise database_error(exc) from exc
