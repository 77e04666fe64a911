from __future__ import annotations

import argparse
import json
import math
import sys
from collections.abc import Sequence

from nodepulse_api.rpc_client import RequestsJsonRpcClient
from nodepulse_core.block_height import BlockHeightQuery
from nodepulse_core.config import get_settings, load_env_file
from nodepulse_core.models import HealthStatus
from nodepulse_core.rpc import RpcTransportError
from nodepulse_core.sampler import LatencySampler


def _non_negative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("must be >= 0")
    return parsed


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    settings = get_settings()
    parser = argparse.ArgumentParser(
        description="Probe a JSON-RPC node once: latency round and block height"
    )
    parser.add_argument(
        "--rpc-url",
        default=settings.rpc_url,
        help="JSON-RPC endpoint. Defaults to ETH_RPC.",
    )
    parser.add_argument(
        "--round-size",
        type=_non_negative_int,
        default=settings.round_size,
        help="Number of sequential probe calls in the latency round",
    )
    parser.add_argument(
        "--skip-block",
        action="store_true",
        help="Only run the latency round",
    )
    parser.add_argument(
        "--fail-on",
        choices=[status.value for status in HealthStatus],
        default=None,
        help="Exit non-zero when the round status is at least this severe",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print machine-readable JSON output",
    )
    return parser.parse_args(argv)


def _fmt_ms(value: float) -> str:
    if math.isnan(value):
        return "n/a"
    return f"{value:.2f}"


def run(argv: Sequence[str] | None = None) -> int:
    load_env_file()
    args = parse_args(argv)

    settings = get_settings()
    client = RequestsJsonRpcClient(
        args.rpc_url,
        method=settings.rpc_method,
        timeout_seconds=settings.rpc_timeout_seconds,
    )
    try:
        sampler = LatencySampler(client.probe, penalty_ms=settings.penalty_ms)
        summary = sampler.run_round(args.round_size, settings.thresholds)
        output: dict[str, object] = {
            "rpc_url": args.rpc_url,
            "p50_ms": None if math.isnan(summary.p50) else summary.p50,
            "p95_ms": None if math.isnan(summary.p95) else summary.p95,
            "samples": summary.sample_count,
            "failures": summary.failures,
            "status": summary.status.value,
        }

        if not args.skip_block:
            query = BlockHeightQuery(
                client, chain_label=settings.chain_name, method=settings.rpc_method
            )
            try:
                block = query.current_height()
            except RpcTransportError as exc:
                output["block_error"] = str(exc)
            else:
                output["block_number_hex"] = block.raw_hex
                output["block_number"] = block.value
                output["block_degraded"] = block.degraded
    finally:
        client.close()

    if args.json:
        print(json.dumps(output))
    else:
        line = (
            "probe-node "
            f"status={output['status']} samples={summary.sample_count} "
            f"failures={summary.failures} "
            f"p50_ms={_fmt_ms(summary.p50)} p95_ms={_fmt_ms(summary.p95)}"
        )
        if "block_number" in output:
            line += f" block={output['block_number']} hex={output['block_number_hex']}"
        print(line)
        if "block_error" in output:
            print(f"probe-node: block height unavailable: {output['block_error']}", file=sys.stderr)

    if args.fail_on is not None and summary.status >= HealthStatus(args.fail_on):
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(run())
