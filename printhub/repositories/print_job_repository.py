from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from printhub.models.print_job import PrintJobRecord
from printhub.models.order import Order

MATCH_EXACT = "exact"
MATCH_FUZZY = "fuzzy"


class PrintJobRepository:
    """
    Storage of PrintJobRecords and the lookups used by checkout reconciliation.
    """

    def __init__(self, db: Session):
        self.db = db

    # ======================================================
    # 🔍 Lookup
    # ======================================================

    def find_by_file_ref(self, file_ref: str) -> Optional[PrintJobRecord]:
        '''Exact file reference match; unlinked records first, then newest'''
        if not file_ref:
            return None
        return (
            self.db.query(PrintJobRecord)
            .filter(PrintJobRecord.file_ref == file_ref)
            .order_by(
                PrintJobRecord.order_ref.is_(None).desc(),
                PrintJobRecord.created_at.desc(),
            )
            .first()
        )

    def find_by_fuzzy_name(self, filename: str) -> Optional[PrintJobRecord]:
        '''
        Case-insensitive substring match on the stored filename.
        A blank filename never matches.
        '''
        needle = (filename or "").strip()
        if not needle:
            return None
        escaped = needle.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        return (
            self.db.query(PrintJobRecord)
            .filter(PrintJobRecord.original_filename.ilike(f"%{escaped}%", escape="\\"))
            .order_by(
                PrintJobRecord.order_ref.is_(None).desc(),
                PrintJobRecord.created_at.desc(),
            )
            .first()
        )

    def find_by_file_ref_or_fuzzy_name(
        self,
        file_ref: str,
        filename: str,
    ) -> Tuple[Optional[PrintJobRecord], Optional[str]]:
        '''
        Two strategies tried in order: exact file reference, then fuzzy filename.

        :return: (record, MATCH_EXACT | MATCH_FUZZY) or (None, None)
        '''
        record = self.find_by_file_ref(file_ref)
        if record is not None:
            return record, MATCH_EXACT

        record = self.find_by_fuzzy_name(filename)
        if record is not None:
            return record, MATCH_FUZZY

        return None, None

    def find_by_print_id(self, print_id: str) -> Optional[PrintJobRecord]:
        return (
            self.db.query(PrintJobRecord)
            .filter(PrintJobRecord.print_id == print_id)
            .first()
        )

    def list_by_order(self, order: Order) -> List[PrintJobRecord]:
        return (
            self.db.query(PrintJobRecord)
            .filter(PrintJobRecord.order_ref == order.id)
            .order_by(PrintJobRecord.created_at)
            .all()
        )

    def list_unlinked(self) -> List[PrintJobRecord]:
        return (
            self.db.query(PrintJobRecord)
            .filter(PrintJobRecord.order_ref.is_(None))
            .order_by(PrintJobRecord.created_at.desc())
            .all()
        )

    def list_all(self) -> List[PrintJobRecord]:
        return self.db.query(PrintJobRecord).order_by(PrintJobRecord.created_at.desc()).all()

    # ======================================================
    # ✏️ Writes
    # ======================================================

    def insert(self, record: PrintJobRecord) -> PrintJobRecord:
        self.db.add(record)
        self.db.flush()
        return record

    def relink_to_order(self, record: PrintJobRecord, order: Order) -> PrintJobRecord:
        '''Point record at order; the previous link, if any, is overwritten'''
        record.order = order
        record.order_ref = order.id
        self.db.flush()
        return record
