import pytest
from fastapi import HTTPException
from sqlalchemy import func, select

from sellfast.core.ids import gen_id
from sellfast.models.idempotency import IdempotencyKey
from sellfast.services.idempotency import body_fingerprint, remember_response, replay_or_reserve


def test_fingerprint_ignores_key_order():
    assert body_fingerprint({"a": 1, "b": [1, 2]}) == body_fingerprint({"b": [1, 2], "a": 1})
    assert body_fingerprint({"a": 1}) != body_fingerprint({"a": 2})


def test_gen_id_rejects_unknown_prefix():
    assert gen_id("lst").startswith("lst_")
    with pytest.raises(ValueError):
        gen_id("zzz")


@pytest.mark.asyncio
async def test_unfinished_reservation_is_taken_over(db_session, seed_user):
    body = {"title": "iPhone"}
    db_session.add(IdempotencyKey(user_id=seed_user["user_id"], key="k1", body_fingerprint=body_fingerprint(body)))
    await db_session.commit()

    assert await replay_or_reserve(db_session, user_id=seed_user["user_id"], key="k1", body=body) is None
    await remember_response(db_session, user_id=seed_user["user_id"], key="k1", response={"listing": {"id": "lst_1"}})
    await db_session.commit()

    stored = await replay_or_reserve(db_session, user_id=seed_user["user_id"], key="k1", body=body)
    assert stored == {"listing": {"id": "lst_1"}}

    count = (await db_session.execute(select(func.count()).select_from(IdempotencyKey))).scalar_one()
    assert count == 1


@pytest.mark.asyncio
async def test_different_body_conflicts(db_session, seed_user):
    await replay_or_reserve(db_session, user_id=seed_user["user_id"], key="k2", body={"title": "a"})
    with pytest.raises(HTTPException) as exc:
        await replay_or_reserve(db_session, user_id=seed_user["user_id"], key="k2", body={"title": "b"})
    assert exc.value.status_code == 409


@pytest.mark.asyncio
async def test_overlong_key_is_rejected(client, seed_user):
    r = await client.post(
        "/api/listings/create",
        json={},
        headers={"Cookie": f"token={seed_user['token']}", "Idempotency-Key": "x" * 201},
    )
    assert r.status_code == 400
    assert r.json() == {"error": "Idempotency-Key too long"}
