from printhub.db.session import get_engine
from printhub.db.base import Base
import printhub.models  # noqa: F401  registers every table on Base.metadata


def init_db():
    engine = get_engine()
    Base.metadata.create_all(bind=engine)
