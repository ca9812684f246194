# scripts/init_db.py
"""
Create the customers / invoices tables in the configured DATABASE_URL.
"""

import logging

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.engine import get_engine, init_db

logger = logging.getLogger(__name__)


def main():
    settings = get_settings()
    configure_logging(settings.log_level)
    init_db(get_engine(settings))
    logger.info("DB schema created.")


if __name__ == "__main__":
    main()
