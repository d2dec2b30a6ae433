"""Command line entry point for fetching and inspecting mldata datasets."""

from __future__ import annotations

import argparse
import json
import logging
import math
from pathlib import Path
from typing import Any, Iterable

from mldata import LoaderConfig, MLDataError, available_datasets


def _jsonable(value: Any) -> Any:
    if isinstance(value, tuple):
        return [_jsonable(v) for v in value]
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _format_sample(name: str, index: int, sample) -> str:
    payload = {
        "dataset": name,
        "index": index,
        "features": _jsonable(sample.features),
        "target": _jsonable(sample.target),
    }
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--dataset", choices=sorted(available_datasets()), help="Dataset to load"
    )
    parser.add_argument(
        "--list", action="store_true", help="List registered datasets and exit"
    )
    parser.add_argument(
        "--cache-dir", type=Path, help="Cache root (defaults to $MLDATA_HOME or the user data dir)"
    )
    parser.add_argument(
        "--offline",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Never access the network; fail if files are not cached",
    )
    parser.add_argument(
        "--no-verify",
        action="store_true",
        help="Skip checksum verification of cached and downloaded files",
    )
    parser.add_argument("--split", help="Only parse data files of this split")
    parser.add_argument(
        "--sample",
        type=int,
        action="append",
        default=[],
        help="Print the sample at this index (repeatable)",
    )
    parser.add_argument("--timeout", type=float, default=60.0, help="Download timeout in seconds")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log cache activity")
    return parser.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.list:
        for name in available_datasets():
            print(name)
        raise SystemExit(0)

    if not args.dataset:
        raise SystemExit("--dataset is required unless --list is given")

    config = LoaderConfig(
        args.dataset,
        cache_dir=args.cache_dir,
        verify_checksums=not args.no_verify,
        download=None if args.offline is None else not args.offline,
        timeout=args.timeout,
    )
    try:
        loader = config.create()
        info = loader.load_info()
        print(json.dumps(info.as_dict(), sort_keys=True))
        if args.sample or args.split:
            dataset = loader.load_data(split=args.split)
            for index in args.sample:
                print(_format_sample(args.dataset, index, dataset.get_sample(index)))
    except MLDataError as exc:
        raise SystemExit(f"error: {exc}") from exc


if __name__ == "__main__":
    main()
