"""
nftlife command-line interface.

Each subcommand parses its own arguments and returns an exit code:
0 on success, 1 on a lifecycle rejection or a store or journal IO error (the error code is
printed to stderr), 2 on usage errors. Records live in a FileStore under
IoSettings.root_dir; every attempt is journaled unless the journal is disabled.

Examples:
    nftlife mint --name Ember --uri ipfs://ember
    nftlife evolve 3f1c...e9 --seed 7
    nftlife fuse <ref_a> <ref_b> --type magic
    nftlife simulate-evolution --trials 10000 --seed 1
"""

from __future__ import annotations

import argparse
import json
import sys
from collections.abc import Callable
from dataclasses import replace

import polars as pl
from dotenv import load_dotenv
from loguru import logger

from nftlife.core.codec import decode, encode
from nftlife.core.errors import NftError, SchemaError, VersionMismatch
from nftlife.core.grammar import RARITY_ORDER, FusionType, TableName, evolution_chance
from nftlife.core.hashing import derive_record_address
from nftlife.core.schema import NftState
from nftlife.io.config import IoSettings
from nftlife.io.errors import IoError, StoreError
from nftlife.io.journal import Journal
from nftlife.io.logs import configure_logging
from nftlife.io.paths import record_path
from nftlife.io.records import FileStore
from nftlife.lifecycle.achievements import achievement_tier, compute_points
from nftlife.lifecycle.config import LifecycleSettings
from nftlife.lifecycle.randomness import DigestRandom, RandomSource, SeededRandom

from .clock import Clock, FixedClock, SystemClock
from .service import NftLedger, to_entity_ref

EXIT_OK = 0
EXIT_REJECTED = 1
EXIT_USAGE = 2


def _common_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(add_help=False)
    p.add_argument("--root", type=str, default=None, help="Override IoSettings.root_dir.")
    p.add_argument("--config", type=str, default=None, help="TOML config (default: nftlife.toml).")
    p.add_argument("--now", type=int, default=None, help="Use a fixed clock (unix seconds).")
    p.add_argument("--seed", type=int, default=None, help="Seed for evolution draws.")
    p.add_argument(
        "--seed-hex",
        type=str,
        default=None,
        help="Hex seed (e.g. a block hash) for an auditable digest draw stream.",
    )
    p.add_argument(
        "--no-env",
        action="store_true",
        help="Do not auto-load .env (by default, .env is loaded if present).",
    )
    return p


def _settings(args: argparse.Namespace) -> tuple[IoSettings, LifecycleSettings]:
    if not args.no_env:
        load_dotenv(".env", override=False)
    io = IoSettings.load(args.config)
    if args.root:
        io = replace(io, root_dir=args.root)
    configure_logging(io.log_level)
    return io, LifecycleSettings.load(args.config)


def _rng(args: argparse.Namespace) -> RandomSource:
    if args.seed_hex:
        try:
            return DigestRandom(bytes.fromhex(args.seed_hex))
        except ValueError as exc:
            print(f"invalid --seed-hex: {exc}", file=sys.stderr)
            raise SystemExit(EXIT_USAGE) from exc
    return SeededRandom(args.seed)


def _open_ledger(args: argparse.Namespace) -> NftLedger:
    io, lifecycle = _settings(args)
    clock: Clock = FixedClock(args.now) if args.now is not None else SystemClock()
    return NftLedger(
        FileStore(io),
        clock=clock,
        rng=_rng(args),
        settings=lifecycle,
        journal=Journal(io) if io.journal_enabled else None,
    )


def _print_state(state: NftState) -> None:
    obj = state.to_json_obj()
    obj["address"] = state.address
    obj["achievement_tier"] = achievement_tier(state.level).value
    print(json.dumps(obj, indent=2, sort_keys=True))


def _run(op: Callable[[], NftState]) -> int:
    """Run a ledger operation and map its failures to exit codes."""
    try:
        state = op()
    except NftError as exc:
        print(f"rejected: {exc}", file=sys.stderr)
        return EXIT_REJECTED
    except (StoreError, IoError) as exc:
        print(f"store error: {exc}", file=sys.stderr)
        return EXIT_REJECTED
    except SchemaError as exc:
        print(f"invalid input: {exc}", file=sys.stderr)
        return EXIT_USAGE
    _print_state(state)
    return EXIT_OK


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------


def _cmd_mint(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="nftlife mint", parents=[_common_parser()])
    p.add_argument("--name", type=str, required=True)
    p.add_argument("--uri", type=str, default="")
    p.add_argument("--level", type=int, default=1, help="Initial level (>= 1).")
    p.add_argument("--rarity", type=str, default=None, help="Override the oracle's rarity.")
    p.add_argument("--ref", type=str, default=None, help="64-hex entity reference (random if omitted).")
    args = p.parse_args(argv)
    ledger = _open_ledger(args)
    return _run(
        lambda: ledger.mint(
            args.name,
            args.uri,
            initial_level=args.level,
            rarity_override=args.rarity,
            entity_ref=args.ref,
        )
    )


def _cmd_show(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="nftlife show", parents=[_common_parser()])
    p.add_argument("ref", type=str)
    args = p.parse_args(argv)
    ledger = _open_ledger(args)
    return _run(lambda: ledger.get(args.ref))


def _cmd_update(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        prog="nftlife update",
        parents=[_common_parser()],
        description=(
            "--level with --min-elapsed runs update_metadata (optionally with --rarity); "
            "--level alone runs update_level, --rarity alone update_rarity, --uri update_uri."
        ),
    )
    p.add_argument("ref", type=str)
    p.add_argument("--level", type=int, default=None)
    p.add_argument("--min-elapsed", type=int, default=None)
    p.add_argument("--rarity", type=str, default=None)
    p.add_argument("--uri", type=str, default=None)
    args = p.parse_args(argv)

    if args.uri is not None and any(v is not None for v in (args.level, args.rarity, args.min_elapsed)):
        p.error("--uri cannot be combined with level/rarity updates")
    if all(v is None for v in (args.level, args.rarity, args.uri)):
        p.error("nothing to update")
    if args.min_elapsed is not None and args.level is None:
        p.error("--min-elapsed requires --level")
    if args.min_elapsed is None and args.level is not None and args.rarity is not None:
        p.error("--level with --rarity requires --min-elapsed")

    ledger = _open_ledger(args)
    if args.uri is not None:
        return _run(lambda: ledger.update_uri(args.ref, args.uri))
    if args.min_elapsed is not None:
        return _run(
            lambda: ledger.update_metadata(args.ref, args.level, args.min_elapsed, args.rarity)
        )
    if args.level is not None:
        return _run(lambda: ledger.update_level(args.ref, args.level))
    return _run(lambda: ledger.update_rarity(args.ref, args.rarity))


def _cmd_level_up(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="nftlife level-up", parents=[_common_parser()])
    p.add_argument("ref", type=str)
    args = p.parse_args(argv)
    ledger = _open_ledger(args)
    return _run(lambda: ledger.level_up(args.ref))


def _cmd_evolve(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="nftlife evolve", parents=[_common_parser()])
    p.add_argument("ref", type=str)
    args = p.parse_args(argv)
    ledger = _open_ledger(args)
    return _run(lambda: ledger.evolve(args.ref))


def _cmd_evolve_rarity(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="nftlife evolve-rarity", parents=[_common_parser()])
    p.add_argument("ref", type=str)
    args = p.parse_args(argv)
    ledger = _open_ledger(args)
    return _run(lambda: ledger.evolve_rarity(args.ref))


def _cmd_fuse(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="nftlife fuse", parents=[_common_parser()])
    p.add_argument("ref_a", type=str)
    p.add_argument("ref_b", type=str)
    p.add_argument("--type", dest="fusion_type", type=str, required=True,
                   help=f"One of {[f.value for f in FusionType]}.")
    p.add_argument("--result-ref", type=str, default=None)
    p.add_argument("--uri", type=str, default=None)
    args = p.parse_args(argv)
    ledger = _open_ledger(args)
    return _run(
        lambda: ledger.fuse(
            args.ref_a, args.ref_b, args.fusion_type, result_ref=args.result_ref, uri=args.uri
        )
    )


def _cmd_history(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="nftlife history", parents=[_common_parser()])
    p.add_argument("ref", type=str)
    p.add_argument(
        "--table",
        type=str,
        default=TableName.LIFECYCLE_EVENTS.value,
        choices=[t.value for t in TableName],
    )
    p.add_argument("--n", type=int, default=50, help="Rows to display.")
    args = p.parse_args(argv)
    io, _ = _settings(args)
    try:
        address = derive_record_address(to_entity_ref(args.ref))
    except SchemaError as exc:
        print(f"invalid input: {exc}", file=sys.stderr)
        return EXIT_USAGE
    try:
        df = Journal(io).history(address, table=args.table)
    except IoError as exc:
        print(f"journal error: {exc}", file=sys.stderr)
        return EXIT_REJECTED
    with pl.Config(tbl_rows=args.n, tbl_cols=-1, fmt_str_lengths=80):
        print(df.tail(args.n))
    return EXIT_OK


def simulate_evolution(trials: int, rng: RandomSource) -> pl.DataFrame:
    """
    Draw ``trials`` evolution attempts per rarity and tabulate the success frequency.

    Uses the same draw as EvolutionEngine.evolve (``rng.next(100) < chance``).
    """
    rows = []
    for rarity in RARITY_ORDER:
        chance = evolution_chance(rarity)
        successes = sum(1 for _ in range(trials) if rng.next(100) < chance)
        rows.append(
            {
                "rarity": rarity.value,
                "chance_pct": chance,
                "trials": trials,
                "successes": successes,
            }
        )
    return pl.DataFrame(rows).with_columns(
        (pl.col("successes") * 100.0 / pl.col("trials")).round(2).alias("observed_pct")
    )


def _cmd_simulate_evolution(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="nftlife simulate-evolution", parents=[_common_parser()])
    p.add_argument("--trials", type=int, default=10_000)
    args = p.parse_args(argv)
    if args.trials < 1:
        p.error("--trials must be >= 1")
    print(simulate_evolution(args.trials, _rng(args)))
    return EXIT_OK


def verify_store(store: FileStore) -> list[str]:
    """
    Check every stored record: decodes, re-encodes bit-exactly, sits at its own
    address, and carries up-to-date achievement points. Returns problem strings.
    """
    problems: list[str] = []
    for address in store.list_addresses():
        path = record_path(store.settings, address)
        with open(path, "rb") as fh:
            raw = fh.read()
        try:
            state = decode(raw)
        except (SchemaError, VersionMismatch) as exc:
            problems.append(f"{address}: undecodable ({exc})")
            continue
        if encode(state) != raw:
            problems.append(f"{address}: codec round-trip mismatch")
        if state.address != address:
            problems.append(f"{address}: stored under the wrong address ({state.address})")
        expected = compute_points(state.level, state.rarity, state.evolution_count)
        if state.achievement_points != expected:
            problems.append(
                f"{address}: achievement_points {state.achievement_points} != {expected}"
            )
    return problems


def _cmd_verify(argv: list[str]) -> int:
    p = argparse.ArgumentParser(prog="nftlife verify", parents=[_common_parser()])
    args = p.parse_args(argv)
    io, _ = _settings(args)
    store = FileStore(io)
    problems = verify_store(store)
    for line in problems:
        print(line, file=sys.stderr)
    total = len(store.list_addresses())
    print(f"verified {total} record(s), {len(problems)} problem(s)")
    if problems:
        logger.warning("verify found {} problem(s) under {}", len(problems), io.root_dir)
    return EXIT_REJECTED if problems else EXIT_OK


COMMANDS: dict[str, Callable[[list[str]], int]] = {
    "mint": _cmd_mint,
    "show": _cmd_show,
    "update": _cmd_update,
    "level-up": _cmd_level_up,
    "evolve": _cmd_evolve,
    "evolve-rarity": _cmd_evolve_rarity,
    "fuse": _cmd_fuse,
    "history": _cmd_history,
    "simulate-evolution": _cmd_simulate_evolution,
    "verify": _cmd_verify,
}


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="nftlife", description="NFT lifecycle ledger CLI.")
    sub = p.add_subparsers(dest="cmd", required=True)
    for name in COMMANDS:
        sub.add_parser(name)
    return p


def main(argv: list[str] | None = None) -> None:
    argv = list(sys.argv[1:] if argv is None else argv)
    if not argv or argv[0] in ("-h", "--help"):
        build_argparser().print_help()
        raise SystemExit(EXIT_OK if argv else EXIT_USAGE)
    cmd, rest = argv[0], argv[1:]
    handler = COMMANDS.get(cmd)
    if handler is None:
        print(f"Unknown command: {cmd}", file=sys.stderr)
        raise SystemExit(EXIT_USAGE)
    raise SystemExit(handler(rest))


if __name__ == "__main__":
    main()
