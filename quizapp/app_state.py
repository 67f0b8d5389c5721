from quizapp.logging_config import setup_logging
from quizapp.db import init_db
from quizapp.attempts import AttemptService
from quizapp.notifications import build_notifier
from quizapp.sweeper import ExpirySweeper


class AppState:
    def __init__(self, service: AttemptService, sweeper: ExpirySweeper, notifier):
        self.service = service
        self.sweeper = sweeper
        self.notifier = notifier

    def shutdown(self):
        self.sweeper.stop()
        if hasattr(self.notifier, "shutdown"):
            self.notifier.shutdown()


def init_app(start_sweeper: bool = True, sweep_interval=None) -> AppState:
    setup_logging()
    init_db()

    notifier = build_notifier()
    service = AttemptService(notifier=notifier)
    sweeper = ExpirySweeper(service, interval=sweep_interval)
    if start_sweeper:
        sweeper.start()
    return AppState(service, sweeper, notifier)
