import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Query
from formapi.database import database, formresponse_table, utcnow
from formapi.errors import NotFoundError
from formapi.models.form import FormResponse, SubmissionIn
from formapi.models.user import User
from formapi.responses import api_response
from formapi.routers.form import get_form_row, get_owned_form_row
from formapi.security import get_current_user

logger = logging.getLogger(__name__)
router = APIRouter()


def _response_from_row(row) -> FormResponse:
    return FormResponse(
        id=row.id,
        form_id=row.form_id,
        answers=row.answers,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


@router.post("/submission-form/{fid}", status_code=200)
async def submit_form_response(fid: int, submission: SubmissionIn):
    await get_form_row(fid)

    now = utcnow()
    query = formresponse_table.insert().values(
        form_id=fid,
        answers=[answer.to_json() for answer in submission.answers],
        created_at=now,
        updated_at=now,
    )
    logger.debug(query)
    response_id = await database.execute(query)
    return api_response(200, {"responseId": response_id}, "Form response submitted successfully")


@router.get("/get-FormResponse/{fid}", status_code=200)
async def get_form_responses(fid: int, current_user: Annotated[User, Depends(get_current_user)]):
    await get_owned_form_row(fid, current_user)

    query = (
        formresponse_table.select()
        .where(formresponse_table.c.form_id == fid)
        .order_by(formresponse_table.c.created_at, formresponse_table.c.id)
    )
    rows = await database.fetch_all(query)
    return api_response(
        200,
        [_response_from_row(row).to_json() for row in rows],
        "Form response fetched successfully",
    )


@router.delete("/deletform-response/{fid}", status_code=200)
async def delete_form_response(
    fid: int,
    current_user: Annotated[User, Depends(get_current_user)],
    response_id: Annotated[Optional[int], Query(alias="responseId")] = None,
):
    await get_owned_form_row(fid, current_user)

    # without an explicit id the oldest response goes
    query = formresponse_table.select().where(formresponse_table.c.form_id == fid)
    if response_id is not None:
        query = query.where(formresponse_table.c.id == response_id)
    query = query.order_by(formresponse_table.c.created_at, formresponse_table.c.id).limit(1)
    row = await database.fetch_one(query)
    if row is None:
        raise NotFoundError("Form response not found")

    delete = formresponse_table.delete().where(formresponse_table.c.id == row.id)
    logger.debug(delete)
    await database.execute(delete)
    return api_response(200, {"responseId": row.id}, "Form response deleted successfully")
