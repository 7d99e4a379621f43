from __future__ import annotations

import argparse
import json
import logging
import time
from dataclasses import asdict
from typing import List, Optional

from .accounts import derive_address, load_addresses
from .automation import Keeper
from .clock import ManualClock
from .config import Settings
from .draw import build_audit, to_native
from .engine import LotteryEngine
from .ledger import Ledger
from .oracle import Coordinator, LocalCoordinator, RpcCoordinator
from .rpc import RpcClient
from .verify import verify_audit


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _build_coordinator(settings: Settings, timeout_s: float) -> Coordinator:
    if settings.rpc_url:
        return RpcCoordinator(
            RpcClient(settings.rpc_url, timeout_s=timeout_s),
            settings.coordinator_address,
        )
    return LocalCoordinator(settings.coordinator_address)


def cmd_simulate(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    cfg = settings.draw_config()
    log = logging.getLogger("simulate")

    if args.players_file:
        players: List[str] = load_addresses(args.players_file)
    else:
        players = [derive_address(f"player-{i}") for i in range(args.players)]
    if not players:
        raise SystemExit("No players. Use --players N or a non-empty --players-file.")

    ledger = Ledger()
    clock = ManualClock(start=time.time())
    coordinator = _build_coordinator(settings, args.timeout)
    engine = LotteryEngine(cfg, coordinator, ledger, clock=clock)
    keeper = Keeper(engine, coordinator, poll_interval_s=args.poll_interval)

    try:
        for p in players:
            ledger.fund(p, cfg.entrance_fee)
            engine.enter(p, cfg.entrance_fee)
        log.info("Players entered   : %d", engine.number_of_players)
        log.info("Pot               : %s", to_native(engine.balance))

        entrants = list(engine.round.players)
        pot = engine.balance

        clock.advance(cfg.interval_s)
        request_id = keeper.run_once()
        if request_id is None:
            raise SystemExit("Upkeep was not needed; no draw started.")

        if isinstance(coordinator, LocalCoordinator):
            words = [args.random_word] if args.random_word is not None else None
            coordinator.fulfill_random_words(request_id, words)
        else:
            for _ in range(args.max_polls):
                if not coordinator.is_pending(request_id):
                    break
                time.sleep(args.poll_interval)
                keeper.run_once()
            if coordinator.is_pending(request_id):
                raise SystemExit(
                    f"Request {request_id} was not fulfilled after {args.max_polls} polls."
                )
    finally:
        if isinstance(coordinator, RpcCoordinator):
            coordinator.close()

    fulfilled_id, random_words = coordinator.last_fulfillment
    winner = engine.recent_winner
    audit = build_audit(
        request_id=fulfilled_id,
        random_words=random_words,
        players=entrants,
        winner=winner,
        pot=pot,
        config=cfg,
        coordinator=coordinator.address,
    )

    with open(args.out, "w", encoding="utf-8") as f:
        json.dump(audit, f, indent=2)

    print("========================================")
    print("🎲 VRF LOTTERY DRAW")
    print("========================================")
    print(f"Request id    : {fulfilled_id}")
    print(f"Random word   : {random_words[0]}")
    print(f"Entrants      : {len(entrants)}")
    print(f"Winner index  : {audit['metadata']['winner_index']}")
    print("----------------------------------------")
    print("🏆 WINNER")
    print(f"Address       : {winner}")
    print(f"Prize         : {to_native(pot)}")
    print("----------------------------------------")
    print(f"🧾 Wrote audit: {args.out}")
    return 0


def cmd_verify(args: argparse.Namespace) -> int:
    result = verify_audit(args.audit)
    print("✅ AUDIT VERIFIED")
    print(f"Request id    : {result['request_id']}")
    print(f"Winner        : {result['winner']}")
    print(f"Winner index  : {result['winner_index']}")
    print(f"Entrants      : {result['total_entrants']}")
    return 0


def cmd_config(args: argparse.Namespace) -> int:
    settings = Settings.from_env(rpc_url_override=args.rpc_url)
    out = asdict(settings.draw_config())
    out["coordinator_address"] = settings.coordinator_address
    out["oracle"] = "rpc" if settings.rpc_url else "local"
    print(json.dumps(out, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="vrf-lottery",
        description="Recurring lottery drawn with verifiable randomness.",
    )
    p.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    p.add_argument(
        "--rpc-url", default=None, help="Randomness oracle URL (else env / local)."
    )
    p.add_argument("--timeout", type=float, default=60.0, help="RPC timeout seconds.")

    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("simulate", help="Run one full round and write an audit JSON.")
    s.add_argument("--players", type=int, default=3, help="Number of generated players.")
    s.add_argument(
        "--players-file",
        default=None,
        help="File with one player address per line (overrides --players).",
    )
    s.add_argument(
        "--random-word",
        type=int,
        default=None,
        help="Fix the random word delivered by the local oracle.",
    )
    s.add_argument(
        "--poll-interval", type=float, default=2.0, help="Seconds between oracle polls."
    )
    s.add_argument(
        "--max-polls", type=int, default=60, help="Polls before giving up on the oracle."
    )
    s.add_argument("--out", default="audit.json", help="Audit output JSON path.")
    s.set_defaults(func=cmd_simulate)

    v = sub.add_parser("verify", help="Verify an existing audit.json deterministically.")
    v.add_argument("--audit", required=True, help="Path to audit.json.")
    v.set_defaults(func=cmd_verify)

    c = sub.add_parser("config", help="Print the effective draw configuration.")
    c.set_defaults(func=cmd_config)

    return p


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)
    raise SystemExit(args.func(args))
