"""Submission and retrieval over HTTP."""
import json
import os
from datetime import datetime, timedelta, timezone

import pytest

from formdesk.core.config import settings
from formdesk.db.models import Answer, Response


def _answers(*descriptors) -> str:
    return json.dumps(list(descriptors))


@pytest.fixture
def email_form(make_form):
    """Single-response form that requires an email (form 5, question 12)."""
    return make_form(
        id=5,
        require_email=True,
        questions=[(12, "Your name", "short_text")],
    )


@pytest.fixture
def trust_proxy(monkeypatch):
    monkeypatch.setattr(settings, "TRUST_PROXY_HEADERS", True)


# =============================================================================
# Submission
# =============================================================================

async def test_first_submission_is_created(client, db, email_form):
    res = await client.post(
        "/forms/5/responses",
        data={
            "answers": _answers({"fieldUid": 12, "type": "short_text", "text": "hello"}),
            "email": "a@b.com",
        },
    )

    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Response submitted successfully"
    assert body["answersProcessed"] == 1
    assert body["response"]["formId"] == 5
    assert "submittedAt" in body["response"]

    answer = db.query(Answer).one()
    assert answer.answer_text == "hello"
    assert answer.question_id == 12
    response = db.get(Response, body["response"]["id"])
    assert response.respondent_email == "a@b.com"
    assert response.ip_address == "127.0.0.1"


async def test_repeat_submission_with_same_email_is_rejected(client, db, email_form):
    payload = {
        "answers": _answers({"fieldUid": 12, "type": "short_text", "text": "hello"}),
        "email": "a@b.com",
    }
    assert (await client.post("/forms/5/responses", data=payload)).status_code == 201

    res = await client.post("/forms/5/responses", data=payload)

    assert res.status_code == 403
    assert "message" in res.json()
    assert db.query(Response).count() == 1


async def test_same_email_rejected_from_another_ip(client, db, email_form, trust_proxy):
    payload = {"answers": "[]", "email": "a@b.com"}
    first = await client.post(
        "/forms/5/responses", data=payload, headers={"X-Forwarded-For": "10.0.0.1"}
    )
    second = await client.post(
        "/forms/5/responses", data={**payload, "email": "A@B.com "},
        headers={"X-Forwarded-For": "10.0.0.2"},
    )

    assert first.status_code == 201
    assert second.status_code == 403


async def test_same_ip_rejected_with_different_email(client, email_form):
    first = await client.post("/forms/5/responses", data={"answers": "[]", "email": "a@b.com"})
    second = await client.post("/forms/5/responses", data={"answers": "[]", "email": "c@d.com"})

    assert first.status_code == 201
    assert second.status_code == 403


async def test_missing_required_email_is_validation_error(client, email_form):
    res = await client.post("/forms/5/responses", data={"answers": "[]"})
    assert res.status_code == 400
    assert res.json()["message"] == "Email is required for this form"


async def test_malformed_email_is_validation_error(client, email_form):
    res = await client.post("/forms/5/responses", data={"answers": "[]", "email": "not-an-email"})
    assert res.status_code == 400


async def test_multiple_responses_form_admits_repeats(client, db, make_form):
    form = make_form(allow_multiple_responses=True, require_email=True)
    for _ in range(3):
        res = await client.post(
            f"/forms/{form.id}/responses", data={"answers": "[]", "email": "a@b.com"}
        )
        assert res.status_code == 201
    assert db.query(Response).count() == 3


async def test_unknown_form_is_not_found(client, db):
    res = await client.post("/forms/404/responses", data={"answers": "[]"})
    assert res.status_code == 404
    assert res.json() == {"message": "Form not found"}


@pytest.mark.parametrize("payload", ["{not json", '{"fieldUid": 1}', '"text"'])
async def test_malformed_answers_payload(client, make_form, payload):
    form = make_form(allow_multiple_responses=True)
    res = await client.post(f"/forms/{form.id}/responses", data={"answers": payload})
    assert res.status_code == 400


async def test_unknown_question_is_skipped(client, db, email_form):
    res = await client.post(
        "/forms/5/responses",
        data={
            "answers": _answers(
                {"fieldUid": 12, "type": "short_text", "text": "kept"},
                {"fieldUid": 777, "type": "short_text", "text": "dropped"},
            ),
            "email": "a@b.com",
        },
    )

    assert res.status_code == 201
    assert res.json()["answersProcessed"] == 1
    assert db.query(Answer).count() == 1


async def test_image_upload_urls_follow_attachment_order(client, db, make_form, upload_dir):
    make_form(id=5, questions=[(12, "Photos", "image_upload")])

    res = await client.post(
        "/forms/5/responses",
        data={"answers": _answers({"fieldUid": 12, "type": "image_upload"})},
        files=[
            ("image_12_a.jpg", ("a.jpg", b"jpeg-bytes", "image/jpeg")),
            ("image_12_b.png", ("b.png", b"png-bytes", "image/png")),
        ],
    )

    assert res.status_code == 201
    answer = db.query(Answer).one()
    urls = json.loads(answer.image_urls)
    paths = json.loads(answer.image_paths)
    assert len(urls) == 2
    assert urls[0].endswith(".jpg") and urls[1].endswith(".png")
    assert all(url.startswith("/uploads/") for url in urls)
    with open(paths[0], "rb") as fh:
        assert fh.read() == b"jpeg-bytes"
    assert sorted(os.listdir(upload_dir)) == sorted(os.path.basename(p) for p in paths)


async def test_disallowed_upload_type_rejected(client, db, make_form, upload_dir):
    make_form(id=5, questions=[(12, "Attachment", "file_upload")])

    res = await client.post(
        "/forms/5/responses",
        data={"answers": _answers({"fieldUid": 12, "type": "file_upload"})},
        files=[("file_12_x", ("x.woff", b"font", "font/woff"))],
    )

    assert res.status_code == 400
    assert db.query(Response).count() == 0
    assert os.listdir(upload_dir) == []


async def test_oversized_upload_rejected(client, db, make_form, upload_dir, monkeypatch):
    monkeypatch.setattr(settings, "MAX_UPLOAD_SIZE_BYTES", 8)
    make_form(id=5, questions=[(12, "Attachment", "file_upload")])

    res = await client.post(
        "/forms/5/responses",
        data={"answers": _answers({"fieldUid": 12, "type": "file_upload"})},
        files=[("file_12_big", ("big.txt", b"0123456789", "text/plain"))],
    )

    assert res.status_code == 413
    assert db.query(Response).count() == 0


async def test_rejected_submission_discards_staged_files(client, db, email_form, upload_dir):
    await client.post("/forms/5/responses", data={"answers": "[]", "email": "a@b.com"})

    res = await client.post(
        "/forms/5/responses",
        data={"answers": "[]", "email": "a@b.com"},
        files=[("file_12_x", ("x.txt", b"text", "text/plain"))],
    )

    assert res.status_code == 403
    assert os.listdir(upload_dir) == []


async def test_user_email_fills_respondent_email(client, db, make_form, owner_user):
    form = make_form(allow_multiple_responses=True)
    res = await client.post(
        f"/forms/{form.id}/responses",
        data={"answers": "[]", "userId": str(owner_user.id), "userEmail": "Owner@Formdesk.io"},
    )

    assert res.status_code == 201
    response = db.get(Response, res.json()["response"]["id"])
    assert response.user_id == owner_user.id
    assert response.respondent_email == "owner@formdesk.io"


async def test_unknown_user_id_is_anonymous(client, db, make_form):
    form = make_form(allow_multiple_responses=True)
    res = await client.post(
        f"/forms/{form.id}/responses", data={"answers": "[]", "userId": "9999"}
    )

    assert res.status_code == 201
    assert db.get(Response, res.json()["response"]["id"]).user_id is None


# =============================================================================
# Retrieval
# =============================================================================

def _stored_response(db, form, minutes_ago: int, **fields) -> Response:
    response = Response(
        form_id=form.id,
        submitted_at=datetime.now(timezone.utc) - timedelta(minutes=minutes_ago),
        **fields,
    )
    db.add(response)
    db.commit()
    return response


async def test_retrieval_requires_token(client, email_form):
    res = await client.get("/forms/5/responses")
    assert res.status_code == 401


async def test_retrieval_rejects_invalid_token(client, email_form):
    res = await client.get(
        "/forms/5/responses", headers={"Authorization": "Bearer not-a-jwt"}
    )
    assert res.status_code == 401


async def test_owner_sees_responses_newest_first(owner_client, db, email_form):
    older = _stored_response(db, email_form, 30, respondent_email="old@b.com")
    newer = _stored_response(db, email_form, 5, respondent_email="new@b.com")

    res = await owner_client.get("/forms/5/responses")

    assert res.status_code == 200
    assert [item["id"] for item in res.json()] == [newer.id, older.id]
    assert res.json()[0]["respondent"] == {"name": "Anonymous", "email": "new@b.com"}


async def test_non_owner_is_forbidden(other_client, email_form):
    res = await other_client.get("/forms/5/responses")
    assert res.status_code == 403


async def test_admin_can_read_any_form(admin_client, email_form):
    res = await admin_client.get("/forms/5/responses")
    assert res.status_code == 200
    assert res.json() == []


async def test_retrieval_of_unknown_form(owner_client, db):
    res = await owner_client.get("/forms/404/responses")
    assert res.status_code == 404


async def test_global_listing_for_admin(admin_client, db, make_form):
    first = make_form(title="First")
    second = make_form(title="Second")
    a = _stored_response(db, first, 50)
    b = _stored_response(db, second, 40)
    c = _stored_response(db, first, 10)

    res = await admin_client.get("/forms/0/responses")

    assert res.status_code == 200
    body = res.json()
    assert [item["id"] for item in body] == [c.id, b.id, a.id]
    assert [item["form"]["title"] for item in body] == ["First", "Second", "First"]
    stamps = [item["submittedAt"] for item in body]
    assert stamps == sorted(stamps, reverse=True)


async def test_global_listing_requires_admin(owner_client, email_form):
    res = await owner_client.get("/forms/0/responses")
    assert res.status_code == 403


async def test_submitted_lists_round_trip(client, owner_client, db, make_form):
    make_form(
        id=5,
        questions=[
            (12, "Photos", "image_upload"),
            (13, "Toppings", "checkbox"),
            (14, "CV", "file_upload"),
        ],
    )

    submit = await client.post(
        "/forms/5/responses",
        data={
            "answers": _answers(
                {
                    "fieldUid": 12,
                    "type": "image_upload",
                    "checkboxSelections": ["sunset", "beach"],
                    "multipleChoiceSelection": {"label": "Best", "value": 2},
                },
                {"fieldUid": 13, "type": "checkbox", "text": ["olives", "basil"]},
                {"fieldUid": 14, "type": "file_upload"},
            ),
        },
        files=[
            ("image_12_0", ("a.png", b"png", "image/png")),
            ("file_14_0", ("cv.pdf", b"pdf", "application/pdf")),
        ],
    )
    assert submit.status_code == 201
    assert submit.json()["answersProcessed"] == 3

    res = await owner_client.get("/forms/5/responses")

    answers = {item["question"]: item for item in res.json()[0]["answers"]}
    assert answers["Photos"]["imageResponses"] == ["sunset", "beach"]
    assert answers["Photos"]["multipleChoiceSelection"] == {"label": "Best", "value": 2}
    assert len(answers["Photos"]["imageUrls"]) == 1
    assert answers["Toppings"]["checkboxSelections"] == ["olives", "basil"]
    assert len(answers["CV"]["files"]) == 1
    assert json.loads(answers["CV"]["answerText"])[0].startswith("/uploads/")


async def test_absent_selections_round_trip_as_empty_list(client, owner_client, make_form):
    make_form(id=5, questions=[(12, "Photos", "image_upload")])
    await client.post(
        "/forms/5/responses",
        data={"answers": _answers({"fieldUid": 12, "type": "image_upload"})},
    )

    res = await owner_client.get("/forms/5/responses")

    answer = res.json()[0]["answers"][0]
    assert answer["imageResponses"] == []
    assert answer["imageUrls"] is None


async def test_uploaded_file_is_served_from_returned_url(client, owner_client, make_form):
    make_form(id=5, questions=[(41, "Attachment", "file_upload")])

    submit = await client.post(
        "/forms/5/responses",
        data={"answers": _answers({"fieldUid": 41, "type": "file_upload"})},
        files=[("file_41_a", ("notes.txt", b"meeting notes", "text/plain"))],
    )
    assert submit.status_code == 201

    listing = await owner_client.get("/forms/5/responses")
    (url,) = json.loads(listing.json()[0]["answers"][0]["answerText"])

    res = await client.get(url)

    assert url.startswith("/uploads/") and url.endswith(".txt")
    assert res.status_code == 200
    assert res.content == b"meeting notes"
