"""
Run one onboarding from the command line.

    python -m screenflow.cli https://screen.staging.example.app/a/TOKEN --co-applicants 1
"""
import argparse
import sys
import uuid

from screenflow.core import runner
from screenflow.core.run_config import RunOptions
from screenflow.observability.logging import LogHub
from screenflow.utils.lock import run_lock


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="screenflow", description="Drive a screening application to submission.")
    p.add_argument("magic_link", help="Applicant magic link, e.g. https://screen.<env>/a/<token>")
    p.add_argument("--co-applicants", type=int, default=None, help="Co-applicants to invite")
    p.add_argument("--guarantors", type=int, default=None, help="Guarantors to invite")
    p.add_argument("--lock", action="store_true", help="Hold the shared Redis run lock for the duration")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    actors = {}
    if args.co_applicants is not None:
        actors["co_applicants"] = args.co_applicants
    if args.guarantors is not None:
        actors["guarantors"] = args.guarantors

    hub = None
    try:
        options = RunOptions.from_settings({"actors": actors} if actors else None)
        hub = LogHub(log_dir=options.log_dir)
        if args.lock:
            run_id = uuid.uuid4().hex
            with run_lock(run_id):
                runner.run(args.magic_link, options, hub)
        else:
            runner.run(args.magic_link, options, hub)
    except Exception as e:
        (hub or LogHub()).logger("application-runner").error(
            "run_failed", errorType=type(e).__name__, error=str(e)
        )
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
