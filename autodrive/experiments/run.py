from __future__ import annotations

import argparse
import csv
import json
import logging
import time
from dataclasses import asdict
from pathlib import Path

from autodrive.planner.config import DEFAULT_CONFIG
from autodrive.runtime.clock import VirtualClock, WallClock
from autodrive.runtime.driver import AutoDriver, DriveResult
from autodrive.runtime.simulated_service import SimulatedCarService

logger = logging.getLogger(__name__)

_ACTION_FIELDS = ['section', 'time_s', 'command_type', 'force', 'delay_s']


def _timestamp() -> str:
    return time.strftime('%Y%m%d-%H%M%S', time.localtime())


def _write_outputs(
    out_path: Path,
    *,
    result: DriveResult,
    course: int,
    user: str,
    latency_ms: int,
    realtime: bool,
) -> None:
    out_path.mkdir(parents=True, exist_ok=True)
    with (out_path / 'actions.csv').open('w', newline='', encoding='utf-8') as fp:
        writer = csv.DictWriter(fp, fieldnames=_ACTION_FIELDS)
        writer.writeheader()
        for issued in result.issued:
            writer.writerow(asdict(issued))

    config = {
        'course': course,
        'user': user,
        'latency_ms': latency_ms,
        'realtime': realtime,
        'planner': DEFAULT_CONFIG.to_dict(),
        'sections': result.sections,
        'actions_issued': result.actions_issued,
        'completed': result.completed,
        'output_dir': str(out_path),
    }
    (out_path / 'config.json').write_text(json.dumps(config, indent=2), encoding='utf-8')


def run_course(
    *,
    course: int,
    user: str,
    latency_ms: int,
    realtime: bool = False,
    out_dir: str | None = None,
    max_sections: int | None = None,
) -> DriveResult:
    # The simulated round trip matches the compensation so that timings line up.
    clock = WallClock() if realtime else VirtualClock()
    service = SimulatedCarService(clock=clock, request_latency_s=latency_ms / 1000.0)

    driver = AutoDriver(service=service, clock=clock, max_sections=max_sections)
    result = driver.drive(course=course, user=user, latency_compensation_ms=latency_ms)
    logger.info(
        'Course %d finished=%s sections=%d actions=%d distance=%.1f m time=%.2f s',
        course,
        result.completed,
        result.sections,
        result.actions_issued,
        service.position_m,
        service.total_time_s,
    )

    if out_dir is not None:
        out_path = Path(out_dir) / f'course{course}-{_timestamp()}'
        _write_outputs(out_path, result=result, course=course, user=user, latency_ms=latency_ms, realtime=realtime)
        print(f'[autodrive.run] output_dir={out_path}')
    return result


def main() -> int:
    parser = argparse.ArgumentParser(
        description='Drive a course by planning timed accelerate/brake commands per speed-limit zone.'
    )
    parser.add_argument('course', nargs='?', type=int, choices=[1, 2, 3], default=1, help='Course layout: 1, 2 or 3.')
    parser.add_argument('user', nargs='?', default='test@test.com', help='User identifier for the run.')
    parser.add_argument(
        'latency_ms',
        nargs='?',
        type=int,
        default=50,
        help='Milliseconds of latency compensation applied to command timings.',
    )
    parser.add_argument('--log-level', default='INFO', choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'])
    parser.add_argument('--out-dir', default=None, help='Write actions.csv and config.json under this directory.')
    parser.add_argument('--realtime', action='store_true', help='Run on the wall clock instead of a virtual clock.')
    parser.add_argument('--max-sections', type=int, default=500)
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level), format='%(asctime)s | %(levelname)s | %(message)s')

    if args.latency_ms < 0:
        parser.print_help()
        return 2

    result = run_course(
        course=args.course,
        user=args.user,
        latency_ms=args.latency_ms,
        realtime=args.realtime,
        out_dir=args.out_dir,
        max_sections=args.max_sections,
    )
    return 0 if result.completed else 1


if __name__ == '__main__':
    raise SystemExit(main())
