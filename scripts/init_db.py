import asyncio
import logging
import sys
import os

# Add current directory to path to allow imports from core, models, etc.
sys.path.append(os.getcwd())

from core.config import settings
from core.database import create_ledger_engine, init_ledger

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def init_database():
    logger.info("Connecting to ledger database...")
    engine = create_ledger_engine(settings.DATABASE_URL)

    try:
        await init_ledger(engine)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(init_database())
