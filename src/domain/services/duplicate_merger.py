"""Merge groups that represent the same place into the earliest one."""

import structlog

from domain.entities.group import Group, Membership, MembershipStatus
from domain.entities.location import GroupCategory, location_key
from domain.entities.reports import MergeRecord, MergeReport
from domain.repositories.unit_of_work import IUnitOfWork

logger = structlog.get_logger()


class DuplicateMerger:
    """Folds duplicate groups of a category into their canonical group.

    Groups are keyed with the same normalizer the resolver matches with. The
    earliest created group of each key is canonical. Safe to re-run: once
    merged, every key maps to a single group and nothing is merged again.
    """

    async def merge_duplicates(
        self, uow: IUnitOfWork, category: GroupCategory
    ) -> MergeReport:
        groups = await uow.groups.list_active_by_category(category)
        groups.sort(key=lambda g: g.created_at)
        report = MergeReport(category=category, groups_scanned=len(groups))

        canonical_by_key: dict[str, Group] = {}
        duplicates: list[tuple[str, Group, Group]] = []
        for group in groups:
            key = location_key(category, group.location)
            canonical = canonical_by_key.get(key)
            if canonical is None:
                canonical_by_key[key] = group
            else:
                duplicates.append((key, canonical, group))

        for key, canonical, duplicate in duplicates:
            record = await self._merge_pair(uow, key, canonical, duplicate)
            report.merges.append(record)

        merged_into = {record.canonical_id for record in report.merges}
        for canonical in canonical_by_key.values():
            received_members = canonical.id in merged_into
            changed = await self._recount(uow, canonical, warn=not received_members)
            if changed and not received_members:
                report.counters_repaired += 1

        logger.info(
            "duplicate_merge_completed",
            category=category.value,
            groups_scanned=report.groups_scanned,
            merged_count=report.merged_count,
            counters_repaired=report.counters_repaired,
        )
        return report

    async def _merge_pair(
        self,
        uow: IUnitOfWork,
        key: str,
        canonical: Group,
        duplicate: Group,
    ) -> MergeRecord:
        record = MergeRecord(
            canonical_id=canonical.id,
            duplicate_id=duplicate.id,
            location_key=key,
        )
        for member in await uow.memberships.list_active_by_group(duplicate.id):
            existing = await uow.memberships.get_by_user_and_group(
                member.user_id, canonical.id
            )
            if existing is not None:
                # Canonical rows win, whatever their status.
                record.skipped_members += 1
                continue
            await uow.memberships.create(
                Membership(
                    group_id=canonical.id,
                    user_id=member.user_id,
                    role=member.role,
                    status=MembershipStatus.ACTIVE,
                    joined_at=member.joined_at,
                )
            )
            record.moved_members += 1

        await uow.groups.delete(duplicate.id)
        logger.info(
            "duplicate_group_merged",
            canonical_id=str(canonical.id),
            duplicate_id=str(duplicate.id),
            location_key=key,
            moved_members=record.moved_members,
            skipped_members=record.skipped_members,
        )
        return record

    async def _recount(self, uow: IUnitOfWork, group: Group, warn: bool) -> bool:
        """Overwrite the counter with the true active count. True if it changed."""
        actual = await uow.memberships.count_active_by_group(group.id)
        if actual == group.member_count:
            return False
        if warn:
            logger.warning(
                "member_count_drift",
                group_id=str(group.id),
                stored=group.member_count,
                actual=actual,
            )
        await uow.groups.update_member_count(group.id, actual)
        group.member_count = actual
        return True
