"""
Standalone Settlement Worker - settles and deletes events whose end_time has passed

Runs independently from whatever serves buyers, so a slow sweep never holds up
checkout. One sweep every SETTLEMENT_SWEEP_INTERVAL_SECONDS until SIGINT or
SIGTERM arrives.

Usage:
    PYTHONPATH=$PWD python -m box_office.service.marketplace.driving_adapter.settlement_worker
"""

import signal

import anyio

from box_office.platform.config.di import container
from box_office.platform.logging.loguru_io import Logger
from box_office.platform.observability.tracing import TracingConfig
from box_office.service.marketplace.app.command.settle_expired_events_use_case import (
    SettleExpiredEventsUseCase,
)


class SettlementWorker:
    def __init__(
        self, *, settle_expired_events_use_case: SettleExpiredEventsUseCase, interval_seconds: float
    ) -> None:
        self.settle_expired_events_use_case = settle_expired_events_use_case
        self.interval_seconds = interval_seconds
        self.running = False
        self.sweep_count = 0

    async def run_once(self) -> None:
        try:
            report = await self.settle_expired_events_use_case.sweep()
        except Exception as e:
            # Listing expired events failed; try again next tick
            Logger.base.exception(f'💥 [Settlement Worker] Sweep failed: {e}')
            return
        finally:
            self.sweep_count += 1

        if report.failed:
            Logger.base.warning(
                f'⚠️ [Settlement Worker] {len(report.failed)} events failed: {report.failed}'
            )

    async def run(self, *, max_sweeps: int | None = None) -> None:
        self.running = True
        Logger.base.info(f'✅ [Settlement Worker] Sweeping every {self.interval_seconds}s')
        while self.running:
            await self.run_once()
            if max_sweeps is not None and self.sweep_count >= max_sweeps:
                break
            await anyio.sleep(self.interval_seconds)
        self.running = False
        Logger.base.info('🛑 [Settlement Worker] Stopped')

    def stop(self) -> None:
        self.running = False


async def _watch_signals(worker: SettlementWorker, scope: anyio.CancelScope) -> None:
    with anyio.open_signal_receiver(signal.SIGINT, signal.SIGTERM) as signals:
        async for signum in signals:
            Logger.base.info(f'🛑 [Settlement Worker] Received signal {signum}')
            worker.stop()
            scope.cancel()
            return


async def serve() -> None:
    settings = container.config_service()
    database = container.database()

    tracing = TracingConfig(service_name='box-office-settlement')
    tracing.setup()
    tracing.instrument_sqlalchemy(engine=database.engine_manager.get_engine())
    Logger.base.info('📊 [Settlement Worker] OpenTelemetry configured')

    await database.create_tables()
    worker = SettlementWorker(
        settle_expired_events_use_case=container.settle_expired_events_use_case(),
        interval_seconds=settings.SETTLEMENT_SWEEP_INTERVAL_SECONDS,
    )

    try:
        async with anyio.create_task_group() as tg:
            tg.start_soon(_watch_signals, worker, tg.cancel_scope)
            await worker.run()
            tg.cancel_scope.cancel()
    finally:
        await database.dispose()
        tracing.shutdown()
        Logger.base.info('📊 [Settlement Worker] Tracing shutdown complete')


def main() -> None:
    Logger.base.info('🚀 [Settlement Worker] Starting...')
    anyio.run(serve)


if __name__ == '__main__':
    main()
