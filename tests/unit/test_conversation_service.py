from __future__ import annotations

import uuid
from datetime import timedelta

import pytest

from adopte_chat.application.dto.conversation import ConversationFilterDTO
from adopte_chat.application.exceptions import NotFoundError, ValidationError
from adopte_chat.application.policies.visibility import (
    CONVERSATION_NOT_FOUND,
    NOT_A_PARTICIPANT,
    USER_NOT_FOUND,
    WRONG_BROADCAST_ROLE,
)
from adopte_chat.domain.entities.context_link import AdoptionRequestLink, ApplicationLink
from adopte_chat.domain.entities.participant import Participant
from adopte_chat.domain.value_objects.enums import (
    BroadcastTarget,
    ConversationContext,
    ConversationStatus,
    Role,
)
from adopte_chat.services import conversation_service
from adopte_chat.services.conversation_service import ANONYMOUS_EMAIL, ANONYMOUS_ID
from tests.conftest import NOW, make_conversation, make_message, make_user, outbox_payloads


def _seed_direct(uow, count, *members):
    convs = []
    for i in range(count):
        conv = make_conversation(topic=f"Topic {i}", updated_at=NOW - timedelta(minutes=i))
        convs.append(uow.add_conversation(conv, members))
    return convs


# -- listing -----------------------------------------------------------------


@pytest.mark.asyncio
async def test_first_page_of_fifteen(uow, student, admin):
    _seed_direct(uow, 15, student, admin)

    page = await conversation_service.get_user_conversations(
        student.id, ConversationFilterDTO(page=1, limit=5), uow,
    )

    assert len(page.conversations) == 5
    p = page.pagination
    assert (p.page, p.limit, p.total, p.total_pages) == (1, 5, 15, 3)
    assert [c.topic for c in page.conversations] == [f"Topic {i}" for i in range(5)]


@pytest.mark.asyncio
async def test_last_page_and_beyond(uow, student, admin):
    _seed_direct(uow, 15, student, admin)

    last = await conversation_service.get_user_conversations(
        student.id, ConversationFilterDTO(page=3, limit=7), uow,
    )
    beyond = await conversation_service.get_user_conversations(
        student.id, ConversationFilterDTO(page=4, limit=7), uow,
    )

    assert len(last.conversations) == 15 % 7
    assert last.pagination.total_pages == 3
    assert beyond.conversations == []
    assert beyond.pagination.total == 15


@pytest.mark.asyncio
async def test_empty_listing(uow, student):
    page = await conversation_service.get_user_conversations(
        student.id, ConversationFilterDTO(), uow,
    )

    assert page.conversations == []
    assert page.pagination.total == 0
    assert page.pagination.total_pages == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(("page", "limit"), [(0, 20), (1, 0), (-1, 5)])
async def test_invalid_paging_rejected(uow, student, page, limit):
    with pytest.raises(ValidationError):
        await conversation_service.get_user_conversations(
            student.id, ConversationFilterDTO(page=page, limit=limit), uow,
        )


@pytest.mark.asyncio
async def test_unknown_user_raises(uow):
    with pytest.raises(NotFoundError, match="User not found"):
        await conversation_service.get_user_conversations(
            uuid.uuid4(), ConversationFilterDTO(), uow,
        )
    with pytest.raises(NotFoundError):
        await conversation_service.get_broadcast_conversations_for_user(
            uuid.uuid4(), ConversationFilterDTO(), uow,
        )


@pytest.mark.asyncio
async def test_direct_conversation_visible_only_to_participants(uow, student, company, admin):
    conv = uow.add_conversation(make_conversation(), [admin, student])

    student_page = await conversation_service.get_user_conversations(
        student.id, ConversationFilterDTO(), uow,
    )
    company_page = await conversation_service.get_user_conversations(
        company.id, ConversationFilterDTO(), uow,
    )

    assert [c.id for c in student_page.conversations] == [conv.id]
    assert company_page.conversations == []


@pytest.mark.asyncio
async def test_broadcasts_follow_role(uow, student, company, admin):
    to_all = uow.add_conversation(make_conversation(broadcast_target=BroadcastTarget.ALL), [admin])
    to_students = uow.add_conversation(
        make_conversation(broadcast_target=BroadcastTarget.STUDENTS), [admin],
    )
    to_companies = uow.add_conversation(
        make_conversation(broadcast_target=BroadcastTarget.COMPANIES), [admin],
    )

    student_page = await conversation_service.get_user_conversations(
        student.id, ConversationFilterDTO(), uow,
    )
    company_page = await conversation_service.get_user_conversations(
        company.id, ConversationFilterDTO(), uow,
    )

    assert {c.id for c in student_page.conversations} == {to_all.id, to_students.id}
    assert {c.id for c in company_page.conversations} == {to_all.id, to_companies.id}


@pytest.mark.asyncio
async def test_other_admin_sees_only_broadcasts_to_all(uow, admin):
    to_all = uow.add_conversation(make_conversation(broadcast_target=BroadcastTarget.ALL), [admin])
    to_students = uow.add_conversation(
        make_conversation(broadcast_target=BroadcastTarget.STUDENTS), [admin],
    )
    other_admin = uow.add_user(make_user(Role.ADMIN))

    page = await conversation_service.get_user_conversations(
        other_admin.id, ConversationFilterDTO(), uow,
    )
    access = await conversation_service.is_conversation_accessible(
        to_students.id, other_admin.id, uow,
    )

    assert [c.id for c in page.conversations] == [to_all.id]
    assert access.accessible is False
    assert access.reason == WRONG_BROADCAST_ROLE


@pytest.mark.asyncio
async def test_joining_direct_conversation_makes_it_visible(uow, student, company, admin):
    conv = uow.add_conversation(make_conversation(), [admin, student])
    before = await conversation_service.get_user_conversations(
        company.id, ConversationFilterDTO(), uow,
    )

    await uow.participants_w.add(
        Participant(conversation_id=conv.id, user_id=company.id, joined_at=NOW),
    )
    after = await conversation_service.get_user_conversations(
        company.id, ConversationFilterDTO(), uow,
    )
    bystander = uow.add_user(make_user(Role.COMPANY))
    unrelated = await conversation_service.get_user_conversations(
        bystander.id, ConversationFilterDTO(), uow,
    )

    assert before.conversations == []
    assert [c.id for c in after.conversations] == [conv.id]
    assert unrelated.conversations == []


@pytest.mark.asyncio
async def test_filters_by_context_and_status(uow, student, admin):
    active = uow.add_conversation(make_conversation(), [student, admin])
    uow.add_conversation(make_conversation(status=ConversationStatus.ARCHIVED), [student, admin])
    uow.add_conversation(
        make_conversation(context=ConversationContext.OFFER), [student, admin],
    )

    page = await conversation_service.get_user_conversations(
        student.id,
        ConversationFilterDTO(
            context=ConversationContext.ADMIN_MESSAGE, status=ConversationStatus.ACTIVE,
        ),
        uow,
    )

    assert [c.id for c in page.conversations] == [active.id]


@pytest.mark.asyncio
async def test_broadcast_inbox_separation(uow, student, company, admin):
    to_students = uow.add_conversation(
        make_conversation(broadcast_target=BroadcastTarget.STUDENTS), [admin],
    )
    to_companies = uow.add_conversation(
        make_conversation(broadcast_target=BroadcastTarget.COMPANIES), [admin],
    )
    # a direct conversation never shows up in the broadcast inbox
    uow.add_conversation(make_conversation(), [student, admin])

    student_inbox = await conversation_service.get_broadcast_conversations_for_user(
        student.id, ConversationFilterDTO(), uow,
    )
    company_inbox = await conversation_service.get_broadcast_conversations_for_user(
        company.id, ConversationFilterDTO(), uow,
    )

    assert [c.id for c in student_inbox.conversations] == [to_students.id]
    assert [c.id for c in company_inbox.conversations] == [to_companies.id]
    details = student_inbox.conversations[0].context_details
    assert details.type == "broadcast"
    assert details.target == BroadcastTarget.STUDENTS
    assert student_inbox.pagination.total == 1


@pytest.mark.asyncio
async def test_broadcast_participants_anonymized_for_recipients(uow, student, admin):
    conv = uow.add_conversation(make_conversation(broadcast_target=BroadcastTarget.ALL), [admin])
    uow.add_message(make_message(conversation_id=conv.id, sender_id=admin.id))

    page = await conversation_service.get_user_conversations(
        student.id, ConversationFilterDTO(), uow,
    )

    [participant] = page.conversations[0].participants
    assert participant.id == ANONYMOUS_ID
    assert participant.user.email == ANONYMOUS_EMAIL
    assert participant.user.role == "ADMIN"
    assert str(admin.id) not in {participant.user_id, participant.user.id}

    last = page.conversations[0].last_message
    assert last.sender_id == ANONYMOUS_ID
    assert last.sender.email == ANONYMOUS_EMAIL
    assert last.sender.first_name is None
    assert last.sender.last_name is None


@pytest.mark.asyncio
async def test_broadcast_participants_visible_to_admin(uow, admin):
    conv = uow.add_conversation(make_conversation(broadcast_target=BroadcastTarget.ALL), [admin])
    uow.add_message(make_message(conversation_id=conv.id, sender_id=admin.id))

    page = await conversation_service.get_broadcast_conversations_for_user(
        admin.id, ConversationFilterDTO(), uow,
    )

    [participant] = page.conversations[0].participants
    assert participant.user_id == str(admin.id)
    assert participant.user.email == admin.email
    assert page.conversations[0].last_message.sender_id == admin.id


@pytest.mark.asyncio
async def test_direct_conversation_shape(uow, student, admin):
    conv = uow.add_conversation(make_conversation(topic="Welcome"), [admin, student])
    uow.add_message(
        make_message(conversation_id=conv.id, sender_id=admin.id, content="first",
                     created_at=NOW - timedelta(hours=2)),
    )
    uow.add_message(make_message(conversation_id=conv.id, sender_id=student.id, content="second"))

    page = await conversation_service.get_user_conversations(
        student.id, ConversationFilterDTO(), uow,
    )

    summary = page.conversations[0]
    assert summary.topic == "Welcome"
    assert summary.context_details is None
    assert {p.user_id for p in summary.participants} == {str(admin.id), str(student.id)}
    assert summary.last_message.content == "second"
    assert summary.last_message.sender.first_name == "Camille"


@pytest.mark.asyncio
async def test_context_details_from_linked_rows(uow, student, company):
    adoption = uow.add_conversation(
        make_conversation(context=ConversationContext.ADOPTION_REQUEST), [student, company],
    )
    offer = uow.add_conversation(
        make_conversation(context=ConversationContext.OFFER), [student, company],
    )
    uow.store.adoption_requests[adoption.id] = AdoptionRequestLink(
        status="PENDING", company_name="Acme Robotics",
    )
    uow.store.applications[offer.id] = ApplicationLink(
        status="ACCEPTED", offer_title="Backend intern", company_name="Acme Robotics",
    )

    page = await conversation_service.get_user_conversations(
        student.id, ConversationFilterDTO(), uow,
    )

    details = {c.id: c.context_details for c in page.conversations}
    assert details[adoption.id].type == "adoption_request"
    assert details[adoption.id].status == "PENDING"
    assert details[offer.id].type == "offer"
    assert details[offer.id].offer_title == "Backend intern"
    assert details[offer.id].company_name == "Acme Robotics"


# -- access ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_access_reasons(uow, student, company, admin):
    direct = uow.add_conversation(make_conversation(), [student, admin])
    broadcast = uow.add_conversation(
        make_conversation(broadcast_target=BroadcastTarget.COMPANIES), [admin],
    )

    missing = await conversation_service.is_conversation_accessible(uuid.uuid4(), student.id, uow)
    no_user = await conversation_service.is_conversation_accessible(direct.id, uuid.uuid4(), uow)
    outsider = await conversation_service.is_conversation_accessible(direct.id, company.id, uow)
    wrong_role = await conversation_service.is_conversation_accessible(
        broadcast.id, student.id, uow,
    )

    assert (missing.accessible, missing.reason) == (False, CONVERSATION_NOT_FOUND)
    assert no_user.reason == USER_NOT_FOUND
    assert outsider.reason == NOT_A_PARTICIPANT
    assert wrong_role.reason == WRONG_BROADCAST_ROLE
    assert wrong_role.conversation is None


@pytest.mark.asyncio
async def test_access_granted_returns_shaped_conversation(uow, company, admin):
    broadcast = uow.add_conversation(
        make_conversation(broadcast_target=BroadcastTarget.COMPANIES), [admin],
    )

    result = await conversation_service.is_conversation_accessible(broadcast.id, company.id, uow)

    assert result.accessible is True
    assert result.reason is None
    assert result.conversation.id == broadcast.id
    assert result.conversation.participants[0].id == ANONYMOUS_ID


# -- expiry ------------------------------------------------------------------


@pytest.mark.asyncio
async def test_cleanup_expires_only_overdue_active(uow, admin, clock):
    overdue = uow.add_conversation(
        make_conversation(expires_at=NOW - timedelta(hours=1)), [admin],
    )
    future = uow.add_conversation(make_conversation(expires_at=NOW + timedelta(hours=1)), [admin])
    never = uow.add_conversation(make_conversation(), [admin])
    archived = uow.add_conversation(
        make_conversation(status=ConversationStatus.ARCHIVED, expires_at=NOW - timedelta(days=1)),
        [admin],
    )

    expired = await conversation_service.cleanup_expired_conversations(uow, clock)

    statuses = {cid: c.status for cid, c in uow.store.conversations.items()}
    assert expired == 1
    assert statuses[overdue.id] == ConversationStatus.EXPIRED
    assert statuses[future.id] == ConversationStatus.ACTIVE
    assert statuses[never.id] == ConversationStatus.ACTIVE
    assert statuses[archived.id] == ConversationStatus.ARCHIVED
    assert uow._committed is True

    [payload] = outbox_payloads(uow, "chat.conversation_expired")
    assert payload["conversation_id"] == str(overdue.id)
    assert payload["expired_at"] == NOW.isoformat()


@pytest.mark.asyncio
async def test_cleanup_is_idempotent(uow, admin, clock):
    uow.add_conversation(make_conversation(expires_at=NOW - timedelta(hours=1)), [admin])
    uow.add_conversation(make_conversation(expires_at=NOW - timedelta(days=3)), [admin])

    first = await conversation_service.cleanup_expired_conversations(uow, clock)
    second = await conversation_service.cleanup_expired_conversations(uow, clock)

    assert (first, second) == (2, 0)
    assert len(outbox_payloads(uow, "chat.conversation_expired")) == 2


@pytest.mark.asyncio
async def test_cleanup_skips_rows_flipped_concurrently(uow, admin, clock):
    conv = uow.add_conversation(make_conversation(expires_at=NOW - timedelta(hours=1)), [admin])
    stale = await uow.conversations.list_expirable(NOW)
    # another sweeper got there first
    await uow.conversations_w.mark_expired(conv.id)

    async def _stale_candidates(now):
        return stale

    uow.conversations.list_expirable = _stale_candidates

    assert await conversation_service.cleanup_expired_conversations(uow, clock) == 0
    assert outbox_payloads(uow, "chat.conversation_expired") == []


@pytest.mark.asyncio
async def test_cleanup_continues_after_row_failure(uow, admin, clock, caplog):
    broken = uow.add_conversation(make_conversation(expires_at=NOW - timedelta(hours=2)), [admin])
    fine = uow.add_conversation(make_conversation(expires_at=NOW - timedelta(hours=1)), [admin])
    uow.conversations_w.fail_on.add(broken.id)

    expired = await conversation_service.cleanup_expired_conversations(uow, clock)

    assert expired == 1
    assert uow.store.conversations[fine.id].status == ConversationStatus.EXPIRED
    assert uow.store.conversations[broken.id].status == ConversationStatus.ACTIVE
    assert f"Failed to expire conversation {broken.id}" in caplog.text
