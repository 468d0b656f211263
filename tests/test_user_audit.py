import pytest

from trove.bot.services.audit_log import audit_logger
from trove.bot.services.rubric import RubricService
from trove.bot.services.user import UserService
from trove.db.enums import UserRole
from trove.utils.errors import RubricAlreadyExists


async def test_get_or_create_by_tg_creates_participant_once(db):
    service = UserService()

    user = await service.get_or_create_by_tg(42, tg_username="@ada", display_name="Ada")
    again = await service.get_or_create_by_tg(42, tg_username="ada_l")

    assert user.role == UserRole.PARTICIPANT
    assert user.tg_username == "ada"
    assert again.id == user.id
    assert again.tg_username == "ada_l"
    assert (await db.get_user_by_tg_id(42)).tg_username == "ada_l"


async def test_set_role(db):
    service = UserService()
    user = await service.get_or_create_by_tg(7, display_name="Grace")

    judge = await service.set_role(user.id, UserRole.JUDGE)

    assert judge.role == UserRole.JUDGE
    assert (await service.get_or_create_by_tg(7)).role == UserRole.JUDGE


async def test_service_calls_are_audited_with_bound_actor(factory, criteria):
    organizer = await factory.user(role=UserRole.ORGANIZER)
    event = await factory.event()

    token = audit_logger.bind_actor(organizer.id)
    try:
        rubric = await RubricService().create_rubric(event.id, criteria)
        with pytest.raises(RubricAlreadyExists):
            await RubricService().create_rubric(event.id, criteria)
    finally:
        audit_logger.unbind_actor(token)

    entries, total = await audit_logger.list_entries(actor_id=organizer.id)
    actions = {e.action for e in entries}
    assert total == 2
    assert actions == {"services.rubric.create_rubric", "services.rubric.create_rubric.error"}

    [ok] = [e for e in entries if e.action == "services.rubric.create_rubric"]
    assert ok.payload["result"]["id"] == str(rubric.id)
    assert ok.payload["args"][0] == str(event.id)


async def test_unbound_calls_have_no_actor(factory, criteria):
    event = await factory.event()
    await RubricService().create_rubric(event.id, criteria)

    entries, _ = await audit_logger.list_entries(action="services.rubric.create_rubric")
    assert len(entries) == 1
    assert entries[0].actor_id is None


def test_to_json_reduces_dtos_and_ids():
    import uuid
    from datetime import datetime

    from trove.bot.services.audit_log import to_json

    value = uuid.uuid4()
    assert to_json({"id": value, "role": UserRole.JUDGE, "at": datetime(2024, 1, 2), "tags": ("a", 1)}) == {
        "id": str(value),
        "role": "judge",
        "at": "2024-01-02T00:00:00",
        "tags": ["a", 1],
    }
