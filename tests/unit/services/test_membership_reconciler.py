"""Unit tests for MembershipReconciler."""

from dataclasses import replace

import pytest

from core.exceptions import ConflictError
from domain.entities.group import MembershipRole, MembershipStatus
from domain.services.membership_reconciler import MembershipReconciler


class TestEnsureActiveMembership:
    @pytest.mark.asyncio
    async def test_first_join_inserts_and_increments(self, uow, user_id, make_group) -> None:
        group = make_group(member_count=4)
        uow.memberships.get_by_user_and_group.return_value = None
        uow.memberships.create.side_effect = lambda m: m
        uow.groups.adjust_member_count.return_value = 4

        change = await MembershipReconciler().ensure_active_membership(
            uow, user_id, group, MembershipRole.ADMIN
        )

        assert change.created is True
        assert change.membership.role == MembershipRole.ADMIN
        assert change.membership.status == MembershipStatus.ACTIVE
        uow.groups.adjust_member_count.assert_awaited_once_with(group.id, 1)
        assert group.member_count == 5

    @pytest.mark.asyncio
    async def test_already_active_is_noop(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group()
        uow.memberships.get_by_user_and_group.return_value = make_membership(group, user_id)

        change = await MembershipReconciler().ensure_active_membership(uow, user_id, group)

        assert change.changed is False
        uow.memberships.create.assert_not_awaited()
        uow.memberships.update_status.assert_not_awaited()
        uow.groups.adjust_member_count.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_inactive_row_is_reactivated(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group(member_count=2)
        inactive = make_membership(
            group, user_id, MembershipStatus.INACTIVE, MembershipRole.MODERATOR
        )
        uow.memberships.get_by_user_and_group.return_value = inactive
        uow.memberships.update_status.return_value = replace(
            inactive, status=MembershipStatus.ACTIVE
        )
        uow.groups.adjust_member_count.return_value = 2

        change = await MembershipReconciler().ensure_active_membership(uow, user_id, group)

        assert change.reactivated is True
        assert change.membership.id == inactive.id
        assert change.membership.role == MembershipRole.MODERATOR
        assert uow.memberships.update_status.await_args.args[:2] == (
            inactive.id,
            MembershipStatus.ACTIVE,
        )
        uow.memberships.create.assert_not_awaited()
        assert group.member_count == 3

    @pytest.mark.asyncio
    async def test_banned_row_is_flipped_back_to_active(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group(member_count=0)
        banned = make_membership(group, user_id, MembershipStatus.BANNED)
        uow.memberships.get_by_user_and_group.return_value = banned
        uow.memberships.update_status.return_value = replace(
            banned, status=MembershipStatus.ACTIVE
        )
        uow.groups.adjust_member_count.return_value = 0

        change = await MembershipReconciler().ensure_active_membership(uow, user_id, group)

        assert change.reactivated is True
        assert change.membership.id == banned.id
        assert uow.memberships.update_status.await_args.args[:2] == (
            banned.id,
            MembershipStatus.ACTIVE,
        )
        uow.groups.adjust_member_count.assert_awaited_once_with(group.id, 1)
        assert group.member_count == 1

    @pytest.mark.asyncio
    async def test_insert_race_continues_from_winning_row(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group()
        winner = make_membership(group, user_id)
        uow.memberships.get_by_user_and_group.side_effect = [None, winner]
        uow.memberships.create.side_effect = ConflictError("membership")

        change = await MembershipReconciler().ensure_active_membership(uow, user_id, group)

        assert change.membership is winner
        assert change.changed is False
        uow.groups.adjust_member_count.assert_not_awaited()


class TestDeactivateMembership:
    @pytest.mark.asyncio
    async def test_deactivates_and_decrements(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group(member_count=3)
        membership = make_membership(group, user_id)
        uow.memberships.update_status.return_value = replace(
            membership, status=MembershipStatus.INACTIVE
        )
        uow.groups.adjust_member_count.return_value = 3

        updated = await MembershipReconciler().deactivate_membership(uow, membership, group)

        assert updated.status == MembershipStatus.INACTIVE
        uow.groups.adjust_member_count.assert_awaited_once_with(group.id, -1)
        assert group.member_count == 2

    @pytest.mark.asyncio
    async def test_counter_never_goes_negative(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group(member_count=0)
        membership = make_membership(group, user_id)
        uow.groups.adjust_member_count.return_value = 0

        await MembershipReconciler().deactivate_membership(uow, membership, group)

        assert group.member_count == 0

    @pytest.mark.asyncio
    async def test_inactive_membership_is_left_alone(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group()
        membership = make_membership(group, user_id, MembershipStatus.INACTIVE)

        result = await MembershipReconciler().deactivate_membership(uow, membership, group)

        assert result is membership
        uow.memberships.update_status.assert_not_awaited()


class TestRemoveMembership:
    @pytest.mark.asyncio
    async def test_delete_active_membership_decrements(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group(member_count=2)
        membership = make_membership(group, user_id)
        uow.memberships.delete.return_value = True
        uow.groups.adjust_member_count.return_value = 2

        await MembershipReconciler().remove_membership(uow, membership, group)

        uow.memberships.delete.assert_awaited_once_with(membership.id)
        assert group.member_count == 1

    @pytest.mark.asyncio
    async def test_missing_row_leaves_counter(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group()
        uow.memberships.delete.return_value = False

        await MembershipReconciler().remove_membership(
            uow, make_membership(group, user_id), group
        )

        uow.groups.adjust_member_count.assert_not_awaited()
