import logging
from typing import Annotated, List, Optional

import sqlalchemy
from fastapi import APIRouter, Body, Depends
from formapi.database import (
    database,
    form_table,
    formresponse_table,
    question_table,
    utcnow,
)
from formapi.errors import BadRequestError, ForbiddenError, NotFoundError
from formapi.mail import send_mail
from formapi.models.form import (
    AddQuestionIn,
    CreateFormIn,
    Form,
    FormSummary,
    FormUrlIn,
    Question,
    UpdateFormIn,
)
from formapi.models.user import User
from formapi.responses import api_response
from formapi.security import get_current_user
from formapi.templates import get_template

logger = logging.getLogger(__name__)
router = APIRouter()


def _question_from_row(row) -> Question:
    return Question(
        id=row.id,
        form=row.form_id,
        question_text=row.question_text or "",
        question_description=row.question_description or "",
        question_type=row.question_type,
        options=row.options or [],
        required=bool(row.required),
        answer_type=row.answer_type,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


async def get_form_row(fid: int):
    query = form_table.select().where(form_table.c.id == fid)
    form = await database.fetch_one(query)
    if form is None:
        raise NotFoundError("Form not found")
    return form


async def get_owned_form_row(fid: int, user: User):
    form = await get_form_row(fid)
    if form.user_id != user.id:
        raise ForbiddenError("You are not authorized to modify this form")
    return form


async def get_questions(fid: int) -> List[Question]:
    query = (
        question_table.select()
        .where(question_table.c.form_id == fid)
        .order_by(question_table.c.position, question_table.c.id)
    )
    rows = await database.fetch_all(query)
    return [_question_from_row(row) for row in rows]


async def load_form(fid: int) -> Form:
    """The form with its questions in order."""
    f = await get_form_row(fid)
    return Form(
        id=f.id,
        heading=f.heading,
        description=f.description,
        user_id=f.user_id,
        questions=await get_questions(fid),
        created_at=f.created_at,
        updated_at=f.updated_at,
    )


def _question_values(entry: dict) -> dict:
    return {
        "question_text": entry.get("questionText", ""),
        "question_description": entry.get("questionDescription", ""),
        "question_type": entry["questionType"],
        "options": list(entry.get("options", [])),
        "required": entry.get("required", False),
        "answer_type": entry.get("answerType", "single"),
    }


@router.post("/create-form", status_code=200)
async def create_form(
    current_user: Annotated[User, Depends(get_current_user)],
    form: Annotated[Optional[CreateFormIn], Body()] = None,
):
    template = get_template(form.form_type if form else "blank_form")
    now = utcnow()
    async with database.transaction():
        query = form_table.insert().values(
            heading=template["heading"],
            description=template["description"],
            user_id=current_user.id,
            created_at=now,
            updated_at=now,
        )
        logger.debug(query)
        form_id = await database.execute(query)

        for position, entry in enumerate(template["questions"]):
            await database.execute(
                question_table.insert().values(
                    form_id=form_id,
                    position=position,
                    created_at=now,
                    updated_at=now,
                    **_question_values(entry),
                )
            )

    questions = await get_questions(form_id)
    return api_response(
        200,
        {
            "formId": form_id,
            "heading": template["heading"],
            "description": template["description"],
            "questions": [q.to_json() for q in questions],
        },
        "Form created successfully",
    )


@router.put("/update-form/{fid}", status_code=200)
async def update_form(fid: int, form: UpdateFormIn, current_user: Annotated[User, Depends(get_current_user)]):
    await get_owned_form_row(fid, current_user)
    known_ids = {q.id for q in await get_questions(fid)}

    async with database.transaction():
        query = form_table.update().where(form_table.c.id == fid).values(
            heading=form.heading,
            description=form.description,
            updated_at=utcnow(),
        )
        logger.debug(query)
        await database.execute(query)

        for q in form.questions:
            if q.id is None:
                raise BadRequestError("Question ID is required")
            if q.id not in known_ids:
                raise NotFoundError("Question not found")
            # field names match the question columns
            values = q.model_dump(exclude={"id"}, exclude_unset=True, exclude_none=True)
            values["updated_at"] = utcnow()
            query_question = (
                question_table.update()
                .where(question_table.c.id == q.id, question_table.c.form_id == fid)
                .values(**values)
            )
            logger.debug(query_question)
            await database.execute(query_question)

    updated_form = await load_form(fid)
    return api_response(200, updated_form.to_json(), "Form Updated successfully")


@router.post("/add-question", status_code=201)
async def add_question(question: AddQuestionIn, current_user: Annotated[User, Depends(get_current_user)]):
    await get_owned_form_row(question.form_id, current_user)

    position_query = sqlalchemy.select(
        sqlalchemy.func.coalesce(sqlalchemy.func.max(question_table.c.position) + 1, 0)
    ).where(question_table.c.form_id == question.form_id)
    position = await database.fetch_val(position_query)

    now = utcnow()
    query = question_table.insert().values(
        form_id=question.form_id,
        position=position,
        question_text=(question.question_text or "").strip(),
        question_description="",
        question_type=question.question_type,
        options=[""] if question.question_type in ("mcq", "checkbox") else [],
        required=False,
        answer_type=question.answer_type,
        created_at=now,
        updated_at=now,
    )
    logger.debug(query)
    question_id = await database.execute(query)

    row = await database.fetch_one(question_table.select().where(question_table.c.id == question_id))
    return api_response(201, _question_from_row(row).to_json(), "Question added successfully")


@router.delete("/delete-question/{qid}", status_code=200)
async def delete_question(qid: int, current_user: Annotated[User, Depends(get_current_user)]):
    row = await database.fetch_one(question_table.select().where(question_table.c.id == qid))
    if row is None:
        raise NotFoundError("Question not found")
    await get_owned_form_row(row.form_id, current_user)

    query = question_table.delete().where(question_table.c.id == qid)
    logger.debug(query)
    await database.execute(query)

    updated_form = await load_form(row.form_id)
    return api_response(200, updated_form.to_json(), "Successfully Question deleted")


@router.delete("/delete-form/{fid}", status_code=200)
async def delete_form(fid: int, current_user: Annotated[User, Depends(get_current_user)]):
    form = await get_form_row(fid)
    if form.user_id != current_user.id:
        raise ForbiddenError("You are not authorized to delete this form")

    async with database.transaction():
        await database.execute(
            formresponse_table.delete().where(formresponse_table.c.form_id == fid)
        )
        await database.execute(question_table.delete().where(question_table.c.form_id == fid))
        query = form_table.delete().where(form_table.c.id == fid)
        logger.debug(query)
        await database.execute(query)

    return api_response(200, {}, "Form deleted successfully")


@router.get("/get-allForms", status_code=200)
async def list_forms(current_user: Annotated[User, Depends(get_current_user)]):
    question_count = (
        sqlalchemy.select(
            question_table.c.form_id,
            sqlalchemy.func.count(question_table.c.id).label("questions_count"),
        )
        .group_by(question_table.c.form_id)
        .subquery()
    )
    submission_count = (
        sqlalchemy.select(
            formresponse_table.c.form_id,
            sqlalchemy.func.count(formresponse_table.c.id).label("submission_count"),
        )
        .group_by(formresponse_table.c.form_id)
        .subquery()
    )
    query = (
        sqlalchemy.select(
            form_table.c.id,
            form_table.c.heading,
            form_table.c.description,
            form_table.c.created_at,
            sqlalchemy.func.coalesce(question_count.c.questions_count, 0).label("questions_count"),
            sqlalchemy.func.coalesce(submission_count.c.submission_count, 0).label("submission_count"),
        )
        .select_from(
            form_table
            .join(question_count, form_table.c.id == question_count.c.form_id, isouter=True)
            .join(submission_count, form_table.c.id == submission_count.c.form_id, isouter=True)
        )
        .where(form_table.c.user_id == current_user.id)
        .order_by(form_table.c.created_at.desc(), form_table.c.id.desc())
    )
    logger.debug(query)
    rows = await database.fetch_all(query)
    forms = [
        FormSummary(
            id=row.id,
            heading=row.heading,
            description=row.description,
            created_at=row.created_at,
            questions_count=row.questions_count,
            submission_count=row.submission_count,
        ).to_json()
        for row in rows
    ]
    return api_response(200, forms, "Forms fetched successfully")


@router.get("/get-FormById/{fid}", status_code=200)
async def get_form(fid: int, current_user: Annotated[User, Depends(get_current_user)]):
    form = await load_form(fid)
    return api_response(200, form.to_json(), "Form fetched successfully")


@router.get("/submit-formView/{fid}", status_code=200)
async def view_form(fid: int):
    form = await load_form(fid)
    return api_response(200, form.to_json(), "Form fetched successfully")


@router.get("/get-questionById/{qid}", status_code=200)
async def get_question(qid: int, current_user: Annotated[User, Depends(get_current_user)]):
    row = await database.fetch_one(question_table.select().where(question_table.c.id == qid))
    if row is None:
        raise NotFoundError("Question not found")
    return api_response(200, _question_from_row(row).to_json(), "Question fetched successfully")


@router.post("/send-formUrl", status_code=200)
async def send_form_url(payload: FormUrlIn, current_user: Annotated[User, Depends(get_current_user)]):
    text = (
        "Hello,\n\nYou have been invited to submit a form. "
        f"You can access it using the following link:\n\n{payload.url}\n\n"
        f"Best regards,\n{current_user.full_name}"
    )
    sent = await send_mail(payload.recipient_email, "You've been invited to fill out a form!", text)
    return api_response(200, {"recipientEmail": payload.recipient_email, "sent": sent}, "Email sent successfully!")
