"""Run ARQ worker. Usage: python -m imaginer.worker.run_worker (or `arq imaginer.worker.run_worker.WorkerSettings`)"""

from arq import run_worker
from arq.cron import cron

from imaginer.worker.tasks import get_redis_settings, reconcile_transactions, shutdown, startup


class WorkerSettings:
    functions = [reconcile_transactions]
    cron_jobs = [
        cron(reconcile_transactions, second=0),  # every minute at :00
    ]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = get_redis_settings()


def main() -> None:
    run_worker(WorkerSettings)


if __name__ == "__main__":
    main()
