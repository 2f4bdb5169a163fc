"""Run inbound audits from the command line.

Builds audits with the same provider adapters the API uses and prints a
score summary. With ``--save`` the documents are written to the configured
store so they can be opened and refreshed through the API afterwards.

Usage:
    python scripts/run_audit.py --sites "acme-plumbing.com,https://example.com"
    python scripts/run_audit.py --sites example.com --save --output results.json
"""

import argparse
import asyncio
import sys
from datetime import UTC, datetime
from pathlib import Path

import orjson

sys.path.insert(0, ".")

from api.config import get_settings  # noqa: E402
from api.logging import setup_logging  # noqa: E402
from api.models.audit import AuditDocument  # noqa: E402
from api.store import build_store  # noqa: E402
from worker.providers.registry import build_provider_set  # noqa: E402
from worker.tasks.audit import GROUP_ORDER, AuditOrchestrator  # noqa: E402


async def run_audits(sites: list[str], deep_scan_id: str | None, save: bool) -> list[AuditDocument]:
    settings = get_settings()
    orchestrator = AuditOrchestrator(build_provider_set(settings))
    store = build_store(settings) if save else None

    print("\n" + "=" * 80)
    print("INBOUND DIGITAL AUDIT")
    print("=" * 80)
    print(f"Auditing {len(sites)} site(s)")
    print("=" * 80 + "\n")

    results: list[AuditDocument] = []
    try:
        for i, url in enumerate(sites, 1):
            print(f"[{i}/{len(sites)}] AUDITING: {url}")
            doc = await orchestrator.create(url, deep_scan_id=deep_scan_id)
            if store is not None:
                await store.create(doc)
            results.append(doc)
    finally:
        if store is not None:
            await store.close()

    return results


def print_summary(results: list[AuditDocument]) -> None:
    print("\n" + "=" * 100)
    print("AUDIT RESULTS SUMMARY")
    print("=" * 100)
    header = f"{'ID':<12}{'URL':<36}" + "".join(f"{g[:10]:>11}" for g in GROUP_ORDER)
    print(header)
    print("-" * 100)

    for doc in results:
        scores = "".join(f"{getattr(doc, g).score:>11}" for g in GROUP_ORDER)
        print(f"{doc.id:<12}{doc.meta.url[:34]:<36}{scores}")
        if doc.pending_providers:
            print(f"  >> pending: {', '.join(doc.pending_providers)}")
        for name, error in sorted(doc.provider_errors.items()):
            print(f"  >> {name}: {error[:80]}")

    print("=" * 100)


def save_results(results: list[AuditDocument], output_path: Path) -> None:
    data = {
        "timestamp": datetime.now(UTC).isoformat(),
        "total_sites": len(results),
        "results": [doc.to_public_dict() for doc in results],
    }
    output_path.write_bytes(orjson.dumps(data, option=orjson.OPT_INDENT_2))
    print(f"\nResults saved to: {output_path}")


async def main():
    parser = argparse.ArgumentParser(description="Run inbound audits for one or more sites")
    parser.add_argument(
        "--sites",
        type=str,
        required=True,
        help="Comma-separated list of URLs to audit",
    )
    parser.add_argument(
        "--deep-scan-id",
        type=str,
        default=None,
        help="Site audit project id to include a deep scan",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Write the audits to the configured store",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the public audit documents to this JSON file",
    )
    args = parser.parse_args()

    setup_logging()
    sites = [s.strip() for s in args.sites.split(",") if s.strip()]
    results = await run_audits(sites, args.deep_scan_id, args.save)

    print_summary(results)
    if args.output:
        save_results(results, args.output)


if __name__ == "__main__":
    asyncio.run(main())
