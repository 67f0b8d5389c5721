import argparse
import logging
import sys
import time
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from quizapp.app_state import init_app  # noqa: E402

logger = logging.getLogger("run_sweeper")


def main():
    parser = argparse.ArgumentParser(description="Auto-submit expired quiz attempts.")
    parser.add_argument("--once", action="store_true", help="Run a single sweep and exit.")
    parser.add_argument("--interval", type=float, default=None,
                        help="Seconds between sweeps (default: SWEEP_INTERVAL_SECONDS or 60).")
    args = parser.parse_args()

    state = init_app(start_sweeper=not args.once, sweep_interval=args.interval)
    try:
        if args.once:
            completed = state.sweeper.run_once()
            print(f"Auto-submitted {completed} expired attempts.")
            return
        while state.sweeper.is_running():
            time.sleep(1.0)
    except KeyboardInterrupt:
        logger.info("Stopping sweeper")
    finally:
        state.shutdown()


if __name__ == "__main__":
    main()
