"""Unit tests for MismatchSweeper."""

from dataclasses import replace

import pytest

from core.exceptions import LocationValidationError
from domain.entities.group import MembershipRole, MembershipStatus
from domain.entities.location import GroupCategory, LocationComponents
from domain.services.group_factory import GroupFactory
from domain.services.group_resolver import GroupResolver
from domain.services.membership_reconciler import MembershipReconciler
from domain.services.mismatch_sweeper import MismatchSweeper

PARK_STREET = LocationComponents(
    street="Park Street", city="Kolkata", state="West Bengal", country="India"
)


def _sweeper() -> MismatchSweeper:
    resolver = GroupResolver()
    return MismatchSweeper(
        resolver=resolver,
        factory=GroupFactory(resolver),
        reconciler=MembershipReconciler(),
    )


class TestReconcileUserLocation:
    @pytest.mark.asyncio
    async def test_moves_user_to_new_street_group(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        old = make_group(
            category=GroupCategory.STREET,
            street="MG Road",
            city="Bengaluru",
            state="Karnataka",
            member_count=3,
        )
        old_membership = make_membership(old, user_id)
        uow.memberships.list_active_by_user_and_category.return_value = [
            (old_membership, old)
        ]
        uow.groups.find_by_category_and_filters.return_value = []
        uow.groups.create.side_effect = lambda g: g
        uow.memberships.get_by_user_and_group.return_value = None
        uow.memberships.create.side_effect = lambda m: m
        uow.groups.adjust_member_count.side_effect = [3, 0]

        result = await _sweeper().reconcile_user_location(
            uow, user_id, GroupCategory.STREET, PARK_STREET
        )

        assert [ref.id for ref in result.removed] == [old.id]
        assert result.group_created is True
        assert result.membership_created is True
        assert result.group.name == "Park Street Street Community"
        assert result.group.member_count == 1
        assert old.member_count == 2

        status_call = uow.memberships.update_status.await_args
        assert status_call.args[:2] == (old_membership.id, MembershipStatus.INACTIVE)
        created = uow.memberships.create.await_args.args[0]
        assert created.role == MembershipRole.ADMIN
        assert created.group_id == result.group.id

    @pytest.mark.asyncio
    async def test_rerun_on_consistent_user_changes_nothing(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group(category=GroupCategory.STREET, street="Park Street")
        membership = make_membership(group, user_id)
        uow.memberships.list_active_by_user_and_category.return_value = [(membership, group)]
        uow.groups.find_by_category_and_filters.return_value = [group]
        uow.memberships.get_by_user_and_group.return_value = membership

        result = await _sweeper().reconcile_user_location(
            uow, user_id, GroupCategory.STREET, PARK_STREET
        )

        assert result.changed is False
        assert result.group is group
        uow.memberships.update_status.assert_not_awaited()
        uow.groups.adjust_member_count.assert_not_awaited()
        uow.groups.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_only_the_canonical_group_survives(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        canonical = make_group(category=GroupCategory.STREET, street="Park Street", age_minutes=60)
        duplicate = make_group(category=GroupCategory.STREET, street="park street")
        uow.memberships.list_active_by_user_and_category.return_value = [
            (make_membership(canonical, user_id), canonical),
            (make_membership(duplicate, user_id), duplicate),
        ]
        uow.groups.find_by_category_and_filters.return_value = [duplicate, canonical]
        uow.memberships.get_by_user_and_group.return_value = make_membership(
            canonical, user_id
        )
        uow.groups.adjust_member_count.return_value = 1

        result = await _sweeper().reconcile_user_location(
            uow, user_id, GroupCategory.STREET, PARK_STREET
        )

        assert result.group is canonical
        assert [ref.id for ref in result.removed] == [duplicate.id]

    @pytest.mark.asyncio
    async def test_rejoin_reactivates_previous_row(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group(category=GroupCategory.STREET, street="Park Street", member_count=0)
        inactive = make_membership(group, user_id, MembershipStatus.INACTIVE)
        uow.memberships.list_active_by_user_and_category.return_value = []
        uow.groups.find_by_category_and_filters.return_value = [group]
        uow.memberships.get_by_user_and_group.return_value = inactive
        uow.memberships.update_status.return_value = replace(
            inactive, status=MembershipStatus.ACTIVE
        )
        uow.groups.adjust_member_count.return_value = 0

        result = await _sweeper().reconcile_user_location(
            uow, user_id, GroupCategory.STREET, PARK_STREET
        )

        assert result.reactivated is True
        assert result.membership_created is False
        uow.memberships.create.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_street_rejected_before_any_write(self, uow, user_id) -> None:
        with pytest.raises(LocationValidationError):
            await _sweeper().reconcile_user_location(
                uow, user_id, GroupCategory.STREET, LocationComponents(city="Kolkata")
            )

        uow.memberships.list_active_by_user_and_category.assert_not_awaited()
        uow.memberships.update_status.assert_not_awaited()


class TestDeactivateCategory:
    @pytest.mark.asyncio
    async def test_deactivates_every_membership(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        group = make_group(category=GroupCategory.STREET, street="MG Road")
        uow.memberships.list_active_by_user_and_category.return_value = [
            (make_membership(group, user_id), group)
        ]
        uow.groups.adjust_member_count.return_value = 1

        removed = await _sweeper().deactivate_category(uow, user_id, GroupCategory.STREET)

        assert [ref.id for ref in removed] == [group.id]
        uow.memberships.update_status.assert_awaited_once()


class TestRemoveMismatched:
    @pytest.mark.asyncio
    async def test_deletes_only_mismatched_rows(
        self, uow, user_id, make_group, make_membership
    ) -> None:
        kolkata = make_group(city="Kolkata")
        bengaluru = make_group(city="Bengaluru", state="Karnataka")
        stale = make_membership(bengaluru, user_id)
        uow.memberships.list_active_by_user.return_value = [
            (make_membership(kolkata, user_id), kolkata),
            (stale, bengaluru),
        ]
        uow.memberships.delete.return_value = True
        uow.groups.adjust_member_count.return_value = 1

        removed = await _sweeper().remove_mismatched(uow, user_id, PARK_STREET)

        assert [ref.id for ref in removed] == [bengaluru.id]
        uow.memberships.delete.assert_awaited_once_with(stale.id)
