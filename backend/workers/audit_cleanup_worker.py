import asyncio
import logging
from datetime import datetime, timedelta

from config.constants import AUDIT_CLEANUP_INTERVAL_SECONDS
from config.env import AUDIT_RETENTION_DAYS
from utils.audit import purge_audit_logs

logger = logging.getLogger(__name__)


async def audit_cleanup_worker(db):
    while True:
        cutoff = datetime.utcnow() - timedelta(days=AUDIT_RETENTION_DAYS)

        try:
            removed = await purge_audit_logs(db, cutoff)
            if removed:
                logger.info("AUDIT_CLEANUP removed=%s cutoff=%s", removed, cutoff.isoformat())
        except Exception:
            logger.exception("AUDIT_CLEANUP_ERROR")

        await asyncio.sleep(AUDIT_CLEANUP_INTERVAL_SECONDS)
