from __future__ import annotations

import argparse
import logging
import random
import uuid
from typing import Callable, List, Optional

import redis

from .config import Settings, connect, settings
from .errors import BloomFilterError, InvalidArgument, InvalidParameters
from .filter import RedisBloomFilter
from .local import LocalBloomFilter
from .params import FilterParameters

logger = logging.getLogger("bitmap_bloom.cli")

DEMO_KEY = "topic_read:8839540:20190609"
DEMO_INSERTS = ["76930242", "76930243", "76930244", "76930245", "76930246"]
DEMO_QUERIES = ["76930242", "76930244", "76930246", "76930248"]

EXIT_INVALID = 2
EXIT_STORE = 3


def setup_logging(log_level: str) -> None:
    log_level = log_level.upper()
    if not isinstance(logging.getLevelName(log_level), int):
        raise ValueError(f"unknown log level: {log_level!r}")
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s"
        )
    logging.getLogger("bitmap_bloom").setLevel(log_level)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    overrides = {
        "redis_url": args.redis_url,
        "expected_elements": args.expected,
        "false_positive_rate": args.fpp,
        "log_level": args.log_level,
    }
    return settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})


def cmd_params(args: argparse.Namespace, cfg: Settings, client_factory: Callable[[Settings], redis.Redis]) -> int:
    params = FilterParameters.create(cfg.expected_elements, cfg.false_positive_rate)
    print(f"expected_elements: {params.expected_elements}")
    print(f"false_positive_rate: {params.false_positive_rate}")
    print(f"bitmap_length: {params.bitmap_length}")
    print(f"hash_function_count: {params.hash_function_count}")
    return 0


def cmd_insert(args: argparse.Namespace, cfg: Settings, client_factory: Callable[[Settings], redis.Redis]) -> int:
    ttl = args.ttl if args.ttl is not None else cfg.default_ttl_seconds
    bf = RedisBloomFilter(client_factory(cfg), cfg.expected_elements, cfg.false_positive_rate)
    for element in args.elements:
        bf.insert(args.key, element, ttl)
    print(f"inserted {len(args.elements)} element(s) into {args.key} (ttl={ttl}s)")
    return 0


def cmd_check(args: argparse.Namespace, cfg: Settings, client_factory: Callable[[Settings], redis.Redis]) -> int:
    bf = RedisBloomFilter(client_factory(cfg), cfg.expected_elements, cfg.false_positive_rate)
    for element in args.elements:
        print(f"{element}: {str(bf.may_exist(args.key, element)).lower()}")
    return 0


def cmd_count(args: argparse.Namespace, cfg: Settings, client_factory: Callable[[Settings], redis.Redis]) -> int:
    bf = RedisBloomFilter(client_factory(cfg), cfg.expected_elements, cfg.false_positive_rate)
    bits = bf.bit_count(args.key)
    print(f"bits_set: {bits}")
    print(f"approximate_element_count: {bf.params.approximate_count(bits)}")
    print(f"expected_fpp: {bf.params.fpp_for(bits):.6f}")
    return 0


def cmd_demo(args: argparse.Namespace, cfg: Settings, client_factory: Callable[[Settings], redis.Redis]) -> int:
    client = client_factory(cfg)
    try:
        client.ping()
    except redis.exceptions.RedisError as exc:
        print(f"Could not connect to Redis at {cfg.redis_url}: {exc}")
        return EXIT_STORE

    bf = RedisBloomFilter(client, cfg.expected_elements, cfg.false_positive_rate)
    print(f"hash_function_count: {bf.hash_function_count}")
    print(f"bitmap_length: {bf.bitmap_length}")

    for element in DEMO_INSERTS:
        bf.insert(DEMO_KEY, element, cfg.default_ttl_seconds)
    for element in DEMO_QUERIES:
        print(f"{element}: {str(bf.may_exist(DEMO_KEY, element)).lower()}")
    return 0


def _random_element(rng: random.Random, size: int) -> str:
    return str(uuid.UUID(int=rng.getrandbits(128), version=4)) + str(rng.randrange(size))


def cmd_bench(args: argparse.Namespace, cfg: Settings, client_factory: Callable[[Settings], redis.Redis]) -> int:
    """
    Accuracy check: insert `size` random elements, re-query a tenth of them
    and query size/5 fresh ones. Hit rate should be 100%; the fresh-element
    hit rate is the observed false-positive rate.
    """
    size = args.size
    rng = random.Random(args.seed)
    params = FilterParameters.create(size, cfg.false_positive_rate)

    if args.backend == "redis":
        bf = RedisBloomFilter(client_factory(cfg), params=params)
        key = f"bench:{uuid.UUID(int=rng.getrandbits(128), version=4)}"
        add: Callable[[str], None] = lambda e: bf.insert(key, e, args.ttl)
        contains: Callable[[str], bool] = lambda e: bf.may_exist(key, e)
    else:
        local = LocalBloomFilter(params)
        add = local.add
        contains = local.__contains__

    known: List[str] = []
    for i in range(size):
        element = _random_element(rng, size)
        add(element)
        if i < size // 10:
            known.append(element)

    fresh = [_random_element(rng, size) for _ in range(size // 5)]
    hits = sum(1 for e in known if contains(e))
    false_hits = sum(1 for e in fresh if contains(e))

    print(f"backend: {args.backend}")
    print(f"bitmap_length: {params.bitmap_length} hash_function_count: {params.hash_function_count}")
    print(f"inserted elements re-queried: {len(known)}, reported present: {hits}")
    print(f"fresh elements queried: {len(fresh)}, reported present: {false_hits}")
    hit_rate = hits / len(known) if known else 1.0
    fp_rate = false_hits / len(fresh) if fresh else 0.0
    print(f"hit rate: {hit_rate:.2%}, false-positive rate: {fp_rate:.2%} (target {cfg.false_positive_rate:.2%})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="bitmap-bloom", description="Redis bitmap backed Bloom filter")
    ap.add_argument("--redis-url", default=None, help="Override BLOOM_REDIS_URL")
    ap.add_argument("--expected", type=int, default=None, help="Expected element count")
    ap.add_argument("--fpp", type=float, default=None, help="Target false-positive rate")
    ap.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR or CRITICAL")
    sub = ap.add_subparsers(dest="command", required=True)

    sub.add_parser("params", help="Print the derived bitmap length and hash count").set_defaults(func=cmd_params)

    p = sub.add_parser("insert", help="Insert elements under a key")
    p.add_argument("key")
    p.add_argument("elements", nargs="+")
    p.add_argument("--ttl", type=int, default=None, help="Expiration in seconds")
    p.set_defaults(func=cmd_insert)

    p = sub.add_parser("check", help="Check whether elements may exist under a key")
    p.add_argument("key")
    p.add_argument("elements", nargs="+")
    p.set_defaults(func=cmd_check)

    p = sub.add_parser("count", help="Estimate how many elements a key holds")
    p.add_argument("key")
    p.set_defaults(func=cmd_count)

    sub.add_parser("demo", help="Insert and query the sample topic_read elements").set_defaults(func=cmd_demo)

    p = sub.add_parser("bench", help="Measure hit and false-positive rates")
    p.add_argument("--backend", choices=("local", "redis"), default="local")
    p.add_argument("--size", type=int, default=100_000)
    p.add_argument("--seed", type=int, default=None)
    p.add_argument("--ttl", type=int, default=300)
    p.set_defaults(func=cmd_bench)
    return ap


def main(argv: Optional[List[str]] = None, client_factory: Callable[[Settings], redis.Redis] = connect) -> int:
    args = build_parser().parse_args(argv)
    cfg = _settings_from_args(args)
    try:
        setup_logging(cfg.log_level)
    except ValueError as exc:
        print(f"invalid input: {exc}")
        return EXIT_INVALID

    clients: List[redis.Redis] = []

    def _open(c: Settings) -> redis.Redis:
        client = client_factory(c)
        clients.append(client)
        return client

    try:
        return args.func(args, cfg, _open)
    except (InvalidArgument, InvalidParameters) as exc:
        print(f"invalid input: {exc}")
        return EXIT_INVALID
    except BloomFilterError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"redis failure: {exc}")
        return EXIT_STORE
    finally:
        for client in clients:
            client.close()
