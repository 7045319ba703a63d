from unittest import IsolatedAsyncioTestCase
from unittest.mock import AsyncMock, MagicMock, patch

from core.scheduler import (
    SWEEP_JOB_ID,
    init_scheduler,
    run_auction_sweep,
    scheduler,
    shutdown_scheduler,
)


class TestScheduler(IsolatedAsyncioTestCase):
    def tearDown(self):
        shutdown_scheduler()

    async def test_init_registers_hourly_sweep(self):
        init_scheduler()

        self.assertTrue(scheduler.running)
        job = scheduler.get_job(SWEEP_JOB_ID)
        self.assertIsNotNone(job)
        self.assertIs(job.func, run_auction_sweep)
        fields = {field.name: str(field) for field in job.trigger.fields}
        self.assertEqual(fields["minute"], "0")
        self.assertEqual(fields["hour"], "*")

        shutdown_scheduler()
        self.assertFalse(scheduler.running)

    @patch("core.scheduler.factory_session")
    @patch("core.scheduler.process_expired_auctions", new_callable=AsyncMock)
    async def test_run_auction_sweep(self, mock_sweep, mock_session):
        session = MagicMock()
        mock_session.return_value.__enter__.return_value = session
        mock_sweep.return_value = {"sold": 1, "expired": 2, "failed": 0}

        await run_auction_sweep()

        mock_sweep.assert_awaited_once_with(db=session)

    @patch("core.scheduler.factory_session")
    @patch("core.scheduler.process_expired_auctions", new_callable=AsyncMock)
    async def test_run_auction_sweep_logs_failure(self, mock_sweep, mock_session):
        mock_sweep.side_effect = Exception("db gone")

        with patch("core.scheduler.logger") as mock_logger:
            await run_auction_sweep()

        mock_logger.error.assert_called_once()
