import logging

from tenacity import retry, stop_after_attempt, wait_fixed

from database.database import get_engine
from database.models import Base

logger = logging.getLogger(__name__)


@retry(stop=stop_after_attempt(5), wait=wait_fixed(2))
def init_db(drop_existing: bool = False):
    """Create the assessment, candidate and matching history tables."""
    engine = get_engine()
    backend = engine.url.get_backend_name()
    try:
        if drop_existing:
            logger.warning(f"Dropping existing tables on {backend}")
            Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
    except Exception as e:
        logger.error(f"Could not create tables on {backend}: {e}")
        raise
    logger.info(f"Tables ready on {backend}: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
