from typing import List, Optional
from uuid import uuid4
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from printhub.models.rate_table import RateTable
from printhub.services.pricing_engine import RateCard, DEFAULT_RATE_CARD
from printhub.logger import get_logger

logger = get_logger(__name__)


class RateTableRepository:
    """
    Append-only storage of RateTable versions.
    The current table is the one with the highest version.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_current(self) -> Optional[RateTable]:
        return (
            self.db.query(RateTable)
            .order_by(RateTable.version.desc())
            .first()
        )

    def get_current_or_bootstrap(self) -> RateTable:
        '''
        Current RateTable; the default one is created on first access
        when none exists yet.
        '''
        current = self.get_current()
        if current is not None:
            return current

        logger.info("No rate table found, creating bootstrap default")
        return self.create(DEFAULT_RATE_CARD, updated_by=None)

    def create(self, rate_card: RateCard, updated_by: Optional[str]) -> RateTable:
        '''
        Append a new version built from rate_card.
        Two concurrent writers can compute the same version; the loser of the
        unique constraint re-reads the latest version and tries once more.

        :param rate_card: rates of the new version
        :type rate_card: RateCard
        :param updated_by: admin user id, None for the bootstrap default
        :type updated_by: Optional[str]
        '''
        try:
            return self._insert_version(rate_card, updated_by)
        except IntegrityError:
            logger.warning("Rate table version taken by a concurrent update, retrying")
            return self._insert_version(rate_card, updated_by)

    def _insert_version(self, rate_card: RateCard, updated_by: Optional[str]) -> RateTable:
        rate_table = RateTable(
            id=str(uuid4()),
            version=self._next_version(),
            black_white=rate_card.black_white,
            color=rate_card.color,
            double_sided=rate_card.double_sided,
            paper_size_multipliers={
                size: float(multiplier)
                for size, multiplier in rate_card.paper_size_multipliers.items()
            },
            tax_percentage=rate_card.tax_percentage,
            updated_by=updated_by,
            created_at=datetime.now(timezone.utc),
        )
        with self.db.begin_nested():
            self.db.add(rate_table)
        return rate_table

    def list_history(self, limit: Optional[int] = None) -> List[RateTable]:
        query = self.db.query(RateTable).order_by(RateTable.version.desc())
        if limit:
            query = query.limit(limit)
        return query.all()

    def _next_version(self) -> int:
        '''1 when the table is empty, otherwise highest version + 1'''
        latest = self.get_current()
        return 1 if not latest else latest.version + 1
