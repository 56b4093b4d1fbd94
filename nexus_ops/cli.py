"""Terminal shell for driving a Nexus Ops dashboard session."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
from typing import Iterable, Sequence

from .controller import DashboardController
from .models import LiveEvent, LogEntry
from .rng import DeterministicRNG


def _format_event(event: LiveEvent) -> str:
    line = f"{event.timestamp.astimezone():%H:%M:%S}  {event.user} {event.action}"
    if not event.is_membership_change:
        line += f" in {event.channel}"
    return line


def _format_log(entry: LogEntry) -> str:
    return f"{entry.timestamp.astimezone():%H:%M:%S}  [{entry.level.value.upper()}] {entry.message}"


def _print_section(title: str, lines: Iterable[str]) -> None:
    print(f"== {title}")
    for line in lines:
        print(f"  {line}")


async def run(args: argparse.Namespace) -> int:
    rng = DeterministicRNG(args.seed) if args.seed is not None else None
    async with DashboardController(rng=rng) as dashboard:
        if not await dashboard.connect(args.token, args.guild):
            _print_section("Console", (_format_log(entry) for entry in dashboard.session.logs))
            return 1

        if args.scan:
            report = await dashboard.scan()
            _print_section("Threat scan", [report or ""])

        if args.nuke:
            dashboard.toggle_arm()
            await dashboard.execute()
            _print_section(
                f"Nuke terminal ({dashboard.operation.progress}%)",
                dashboard.operation.narrative,
            )

        if args.duration > 0:
            await asyncio.sleep(args.duration)

        session = dashboard.session
        if session.server is not None:
            print(f"LIVE SYNC: {session.server.name} ({session.server.member_count:,} members)")
        _print_section("Activity feed", (_format_event(event) for event in session.live_events))
        _print_section("Console", (_format_log(entry) for entry in session.logs))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Watch and operate a simulated guild dashboard")
    parser.add_argument("--token", default=os.environ.get("DISCORD_TOKEN"), help="Bot token")
    parser.add_argument("--guild", default=os.environ.get("NEXUS_GUILD_ID"), help="Guild (server) id")
    parser.add_argument(
        "--duration",
        type=float,
        default=20.0,
        help="Seconds to watch the live feed before printing it",
    )
    parser.add_argument("--scan", action="store_true", help="Run the AI threat scan")
    parser.add_argument("--nuke", action="store_true", help="Arm and execute the purge simulation")
    parser.add_argument("--seed", type=int, default=None, help="Seed for the telemetry simulation")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)
    return asyncio.run(run(args))


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
