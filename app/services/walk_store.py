"""
Walk Store - persists generated routes so they can be shared and reopened
"""
import logging
import uuid
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import WalkNotFoundError
from app.models.saved_walk import SavedWalk
from app.models.walk import Route

logger = logging.getLogger(__name__)

SHARE_ID_LENGTH = 12


def new_share_id() -> str:
    return uuid.uuid4().hex[:SHARE_ID_LENGTH]


class WalkStore:
    """Saves and loads routes by share id"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def save(
        self,
        route: Route,
        title: str,
        description: Optional[str] = None
    ) -> SavedWalk:
        """
        Store a route snapshot.

        Args:
            route: Route to persist, serialized with ``Route.to_dict()``
            title: Display title
            description: Optional free text

        Returns:
            The stored row, with its generated share id
        """
        walk = SavedWalk(
            share_id=new_share_id(),
            title=title,
            description=description,
            route_data=route.to_dict(),
        )
        self.db.add(walk)
        await self.db.commit()
        await self.db.refresh(walk)
        logger.info(f"Saved walk {walk.share_id} with {len(route.stops)} stops")
        return walk

    async def get_saved(self, share_id: str) -> SavedWalk:
        stmt = select(SavedWalk).where(SavedWalk.share_id == share_id)
        result = await self.db.execute(stmt)
        walk = result.scalar_one_or_none()
        if walk is None:
            raise WalkNotFoundError(share_id)
        return walk

    async def get(self, share_id: str) -> Route:
        """
        Load a stored route.

        Raises:
            WalkNotFoundError: no walk with that share id
        """
        walk = await self.get_saved(share_id)
        return Route.from_dict(walk.route_data)
