import pytest

from tests.helpers import API, auth

pytestmark = pytest.mark.anyio


def answers_for(form: dict, name: str) -> dict:
    first, second = form["questions"]
    return {
        "answers": [
            {"question": first["id"], "questionText": first["questionText"], "type": "single", "answer": name},
            {"question": second["id"], "questionText": second["questionText"], "type": "single", "answer": ["Yes"]},
        ]
    }


async def test_submit_response(async_client, created_form, registered_user):
    async_client.cookies.clear()
    response = await async_client.post(
        f"{API}/submission-form/{created_form['formId']}", json=answers_for(created_form, "Sam")
    )

    assert response.status_code == 200
    assert response.json()["message"] == "Form response submitted successfully"

    listed = await async_client.get(
        f"{API}/get-FormResponse/{created_form['formId']}", headers=auth(registered_user["access_token"])
    )
    assert listed.status_code == 200
    responses = listed.json()["data"]
    assert len(responses) == 1
    assert responses[0]["formID"] == created_form["formId"]
    assert responses[0]["answers"][0]["answer"] == ["Sam"]
    assert responses[0]["answers"][1]["questionText"] == "Will you attend?"


async def test_submit_response_requires_answers(async_client, created_form):
    response = await async_client.post(
        f"{API}/submission-form/{created_form['formId']}", json={"answers": []}
    )

    assert response.status_code == 400


async def test_submit_response_unknown_form(async_client, db):
    response = await async_client.post(
        f"{API}/submission-form/999999", json={"answers": [{"question": 1, "answer": "x"}]}
    )

    assert response.status_code == 404


async def test_get_responses_not_owner(async_client, created_form, other_user):
    response = await async_client.get(
        f"{API}/get-FormResponse/{created_form['formId']}", headers=auth(other_user["access_token"])
    )

    assert response.status_code == 403


async def test_delete_response_removes_oldest(async_client, created_form, registered_user):
    headers = auth(registered_user["access_token"])
    form_id = created_form["formId"]
    ids = []
    for name in ("Sam", "Alex"):
        submitted = await async_client.post(f"{API}/submission-form/{form_id}", json=answers_for(created_form, name))
        ids.append(submitted.json()["data"]["responseId"])

    response = await async_client.delete(f"{API}/deletform-response/{form_id}", headers=headers)

    assert response.status_code == 200
    assert response.json()["data"]["responseId"] == ids[0]
    remaining = await async_client.get(f"{API}/get-FormResponse/{form_id}", headers=headers)
    assert [r["id"] for r in remaining.json()["data"]] == [ids[1]]


async def test_delete_response_by_id(async_client, created_form, registered_user):
    headers = auth(registered_user["access_token"])
    form_id = created_form["formId"]
    ids = []
    for name in ("Sam", "Alex"):
        submitted = await async_client.post(f"{API}/submission-form/{form_id}", json=answers_for(created_form, name))
        ids.append(submitted.json()["data"]["responseId"])

    response = await async_client.delete(
        f"{API}/deletform-response/{form_id}", params={"responseId": ids[1]}, headers=headers
    )

    assert response.status_code == 200
    remaining = await async_client.get(f"{API}/get-FormResponse/{form_id}", headers=headers)
    assert [r["id"] for r in remaining.json()["data"]] == [ids[0]]


async def test_delete_response_none_left(async_client, created_form, registered_user):
    response = await async_client.delete(
        f"{API}/deletform-response/{created_form['formId']}", headers=auth(registered_user["access_token"])
    )

    assert response.status_code == 404
    assert response.json()["message"] == "Form response not found"
