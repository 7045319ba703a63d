from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from core.auction_sweep import process_expired_auctions
from core.log import logger
from models import factory_session
from settings import AUCTION_SWEEP_CRON

SWEEP_JOB_ID = "process_expired_auctions"

scheduler = AsyncIOScheduler(timezone="UTC")


async def run_auction_sweep():
    """Close ended auctions, scheduled by ``init_scheduler``."""
    try:
        with factory_session() as db:
            summary = await process_expired_auctions(db=db)
        logger.info(
            f"Auction sweep done: sold={summary['sold']} "
            f"expired={summary['expired']} failed={summary['failed']}"
        )
    except Exception as e:
        logger.error(f"Auction sweep failed: {e}")


def init_scheduler(crontab: str = AUCTION_SWEEP_CRON):
    scheduler.add_job(
        run_auction_sweep,
        CronTrigger.from_crontab(crontab, timezone="UTC"),
        id=SWEEP_JOB_ID,
        replace_existing=True,
    )
    scheduler.start()
    logger.info(f"Scheduler started, auction sweep at '{crontab}'")


def shutdown_scheduler():
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shutdown")
