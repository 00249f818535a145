"""
Potluck Backend: Ownership Guard
=================================

What:  Decides whether an authenticated identity may mutate a resource.
How:   Fetch by primary key. Missing → NOT_FOUND. author_id differs from the
       caller → FORBIDDEN. Otherwise ALLOWED.
Who:   Every update/delete of posts, recipes and meal plans goes through
       authorize() before any write happens.

Creation never consults the guard: new rows take author_id from the
bearer token, never from the request payload.
"""

import enum
import logging
from typing import Optional, Protocol, Tuple, Type, TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from potluck.exceptions import AuthorizationError, NotFoundError
from potluck.services.tokens import Identity

logger = logging.getLogger(__name__)


class Owned(Protocol):
    author_id: UUID


OwnedT = TypeVar("OwnedT", bound=Owned)


class Decision(str, enum.Enum):
    ALLOWED = "allowed"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"


class OwnershipGuard:
    def __init__(self, session: AsyncSession):
        self._session = session

    async def check(
        self,
        model: Type[OwnedT],
        resource_id: UUID,
        identity: Identity,
    ) -> Tuple[Decision, Optional[OwnedT]]:
        """Return the decision together with the fetched resource (if any)."""
        resource = await self._session.get(model, resource_id)
        if resource is None:
            return Decision.NOT_FOUND, None
        if resource.author_id != identity.user_id:
            return Decision.FORBIDDEN, resource
        return Decision.ALLOWED, resource

    async def authorize(
        self,
        model: Type[OwnedT],
        resource_id: UUID,
        identity: Identity,
        resource_name: str,
    ) -> OwnedT:
        """
        Return the resource if the caller owns it.

        Raises:
            NotFoundError: no such resource (404)
            AuthorizationError: resource belongs to someone else (403)
        """
        decision, resource = await self.check(model, resource_id, identity)
        if decision is Decision.NOT_FOUND:
            raise NotFoundError(resource=resource_name, resource_id=str(resource_id))
        if decision is Decision.FORBIDDEN:
            logger.warning(
                "Forbidden mutation: user %s on %s %s owned by %s",
                identity.user_id,
                resource_name,
                resource_id,
                resource.author_id,
            )
            raise AuthorizationError(resource=resource_name, resource_id=str(resource_id))
        return resource
