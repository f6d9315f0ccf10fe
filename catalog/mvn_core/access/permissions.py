"""
Edit permission resolution for series and units.

This module decides who may edit a catalog resource and maintains the
allowed-editor set of each series and unit.

Authorization rule, first match wins:
    1. user is the target's owner (created_by)
    2. target is a unit and user owns its parent series
    3. user is in the target's allowed_editors
    otherwise the user is not authorized

Invariants:
    - Owners are always authorized, whatever allowed_editors holds
    - Series ownership cascades to every unit of the series
    - A series-level grant does not cascade to units
    - grant/revoke are idempotent
    - grant/revoke on one target are serialized by a per-target lock;
      different targets proceed in parallel
    - URNs are compared in canonical form

Whether the grantor may grant is checked by the caller, not here.

How to change safely:
    - Keep rule order; owner checks must stay ahead of the editor set
    - Never hold a series lock while requesting a unit lock
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional, Union

from ..config import get_settings
from ..errors import AccessDeniedError, NotFoundError, UrnError, UrnErrorKind
from ..identity import urn as urn_codec
from ..identity.urn import Urn
from ..model import EditPermission, Series, Unit
from .locks import KeyedLock

if TYPE_CHECKING:
    from ..store.base import CatalogRepository

logger = logging.getLogger(__name__)

EDITABLE_TYPES = frozenset({"series", "unit"})

UrnLike = Union[str, Urn]


def _canonical(value: Optional[str]) -> Optional[str]:
    """Canonical form of a stored URN string; stored junk is kept as-is."""
    if value is None:
        return None
    result = urn_codec.try_parse(value)
    return str(result.urn) if result.urn is not None else value


class PermissionResolver:
    """Resolves and maintains edit permissions.

    Attributes:
        locks: Per-target lock registry; defaults to the repository's own
            locks so a series grant and a series recompute serialize

    Example:
        >>> resolver = PermissionResolver(repo)
        >>> await resolver.grant(series_id, "urn:mvn:user:bob", "urn:mvn:user:alice")
        >>> await resolver.is_authorized(series_id, "urn:mvn:user:bob")
        True
    """

    def __init__(
        self,
        repository: CatalogRepository,
        locks: Optional[KeyedLock] = None,
        require_user_urn_type: Optional[bool] = None,
    ) -> None:
        self.repository = repository
        if locks is None:
            locks = getattr(repository, "locks", None)
        self.locks = locks if locks is not None else KeyedLock()
        if require_user_urn_type is None:
            require_user_urn_type = get_settings().require_user_urn_type
        self.require_user_urn_type = require_user_urn_type
        self._records: dict[str, dict[str, EditPermission]] = {}

    # -- validation ---------------------------------------------------------

    def _parse_target(self, target: UrnLike) -> Urn:
        urn = target if isinstance(target, Urn) else urn_codec.parse(target)
        if urn.namespace != urn_codec.MVN_NAMESPACE or urn.type not in EDITABLE_TYPES:
            raise UrnError(
                UrnErrorKind.NOT_APPLICABLE,
                f"Edit permissions apply to series and units only, got {urn}",
                value=str(urn),
            )
        return urn

    def _parse_user(self, user: UrnLike) -> str:
        urn = user if isinstance(user, Urn) else urn_codec.parse(user)
        if self.require_user_urn_type and not urn.is_of_type("user"):
            raise UrnError(
                UrnErrorKind.NOT_APPLICABLE,
                f"Expected a user URN, got {urn}",
                value=str(urn),
            )
        return str(urn)

    # -- repository access --------------------------------------------------

    async def _load(self, target: Urn) -> Union[Series, Unit, None]:
        if target.type == "series":
            return await self.repository.get_series(str(target))
        return await self.repository.get_unit(str(target))

    async def _load_or_raise(self, target: Urn) -> Union[Series, Unit]:
        record = await self._load(target)
        if record is None:
            raise NotFoundError(
                f"{target.type.capitalize()} not found: {target}",
                resource_type=target.type,
                resource_id=str(target),
            )
        return record

    async def _persist(self, record: Union[Series, Unit]) -> None:
        if isinstance(record, Series):
            await self.repository.update_series(record)
        else:
            await self.repository.update_unit(record)

    # -- operations ---------------------------------------------------------

    async def grant(
        self,
        target: UrnLike,
        user: UrnLike,
        granted_by: UrnLike,
    ) -> frozenset[str]:
        """Add user to the target's allowed editors.

        Args:
            target: Series or unit URN
            user: User URN receiving edit rights
            granted_by: User URN recorded as grantor

        Returns:
            The allowed-editor set after the grant

        Raises:
            UrnError: If a URN is malformed or of the wrong kind
            NotFoundError: If the target does not exist
        """
        target_urn = self._parse_target(target)
        user_urn = self._parse_user(user)
        grantor_urn = self._parse_user(granted_by)
        key = str(target_urn)

        async with self.locks.hold(key):
            record = await self._load_or_raise(target_urn)
            editors = tuple(_canonical(e) for e in record.allowed_editors)

            if user_urn in editors:
                logger.debug(
                    "Edit permission already present",
                    extra={"target_urn": key, "user_urn": user_urn},
                )
                return frozenset(editors)

            editors = editors + (user_urn,)
            await self._persist(replace(record, allowed_editors=editors))
            self._records.setdefault(key, {})[user_urn] = EditPermission(
                target_urn=key,
                user_urn=user_urn,
                granted_by=grantor_urn,
                granted_at=datetime.now(timezone.utc),
            )

        logger.info(
            "Granted edit permission",
            extra={"target_urn": key, "user_urn": user_urn, "granted_by": grantor_urn},
        )
        return frozenset(editors)

    async def revoke(self, target: UrnLike, user: UrnLike) -> frozenset[str]:
        """Remove user from the target's allowed editors; no-op if absent.

        Raises:
            UrnError: If a URN is malformed or of the wrong kind
            NotFoundError: If the target does not exist
        """
        target_urn = self._parse_target(target)
        user_urn = self._parse_user(user)
        key = str(target_urn)

        async with self.locks.hold(key):
            record = await self._load_or_raise(target_urn)
            editors = tuple(_canonical(e) for e in record.allowed_editors)

            if user_urn not in editors:
                logger.debug(
                    "Edit permission not present, nothing to revoke",
                    extra={"target_urn": key, "user_urn": user_urn},
                )
                return frozenset(editors)

            editors = tuple(e for e in editors if e != user_urn)
            await self._persist(replace(record, allowed_editors=editors))
            self._records.get(key, {}).pop(user_urn, None)

        logger.info(
            "Revoked edit permission",
            extra={"target_urn": key, "user_urn": user_urn},
        )
        return frozenset(editors)

    async def is_authorized(self, target: UrnLike, user: UrnLike) -> bool:
        """Check whether user may edit target.

        A missing target or an unauthorized user yields False, not an error.

        Raises:
            UrnError: If either URN is malformed, or the target is not a
                series or unit
        """
        target_urn = self._parse_target(target)
        user_urn = str(user if isinstance(user, Urn) else urn_codec.parse(user))

        record = await self._load(target_urn)
        if record is None:
            logger.debug(
                "Authorization check on missing target",
                extra={"target_urn": str(target_urn), "user_urn": user_urn},
            )
            return False

        if _canonical(record.created_by) == user_urn:
            return True

        if isinstance(record, Unit):
            series = await self.repository.get_series(record.series_id)
            if series is not None and _canonical(series.created_by) == user_urn:
                return True

        allowed = user_urn in {_canonical(e) for e in record.allowed_editors}
        logger.debug(
            "Edit permission check",
            extra={"target_urn": str(target_urn), "user_urn": user_urn, "allowed": allowed},
        )
        return allowed

    async def check_or_raise(self, target: UrnLike, user: UrnLike) -> None:
        """Raise AccessDeniedError unless user may edit target."""
        if not await self.is_authorized(target, user):
            raise AccessDeniedError(
                f"Access denied: {user} cannot edit {target}",
                actor=str(user),
                resource_id=str(target),
            )

    async def list_editors(self, target: UrnLike) -> frozenset[str]:
        """Current allowed editors of target.

        Raises:
            NotFoundError: If the target does not exist
        """
        target_urn = self._parse_target(target)
        record = await self._load_or_raise(target_urn)
        return frozenset(_canonical(e) for e in record.allowed_editors)

    async def list_records(self, target: UrnLike) -> list[EditPermission]:
        """Grant records of the current editors, newest first.

        Editors added outside this resolver have no record and are omitted.
        """
        editors = await self.list_editors(target)
        records = self._records.get(str(self._parse_target(target)), {})
        # Latest grant first on equal timestamps
        current = [r for user, r in reversed(records.items()) if user in editors]
        return sorted(current, key=lambda r: r.granted_at, reverse=True)

    async def sync_records(self) -> int:
        """Drop grant records whose target no longer exists.

        Returns:
            Number of records removed
        """
        removed = 0
        for key in list(self._records):
            if await self._load(urn_codec.parse(key)) is None:
                removed += len(self._records.pop(key))

        logger.info("Synced edit permission records", extra={"removed": removed})
        return removed
