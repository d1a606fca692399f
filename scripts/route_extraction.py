#!/usr/bin/env python3
"""Run the routing engine on a saved extraction JSON file."""
import argparse
import asyncio
import json
import sys
from pathlib import Path

from dotenv import load_dotenv
load_dotenv()

from bill_router.config import Settings
from bill_router.pipeline import BillRoutingPipeline, plan_routing
from bill_router.routing.endpoints import Endpoints
from bill_router.storage.database import close_db, init_db
from bill_router.storage.files import FileReference
from bill_router.utils.logging import setup_logging


async def main(args: argparse.Namespace) -> None:
    path = Path(args.extraction)
    if not path.exists():
        print(f"Error: File not found: {args.extraction}")
        sys.exit(1)

    with open(path) as f:
        raw = json.load(f)

    settings = Settings()
    setup_logging(settings.log_level)

    if args.dry_run:
        plan = plan_routing(raw, args.phone, Endpoints.from_settings(settings))
        print(f"Document kind: {plan.decision.document_kind.value}")
        print(f"Indicators: electricity={plan.decision.electricity_indicators} gas={plan.decision.gas_indicators}")
        print(f"Confidence: {plan.confidence.score}")
        for branch in plan.cleared:
            print(f"Cleared {branch.service.value}: {branch.reason}")
        for warning in plan.electricity_date_warnings + plan.gas_date_warnings:
            print(f"Warning: {warning}")
        print("\nPlanned calls:")
        for spec in plan.api_calls:
            print(f"  {spec.service_type.value:<12} {spec.endpoint}  {json.dumps(spec.payload)}")
        return

    file_ref = FileReference(file_url=args.file_url, file_path=args.file_path)
    database_url = settings.database_url.get_secret_value()
    if database_url:
        init_db(database_url)
    pipeline = BillRoutingPipeline(settings)
    try:
        outcome = await pipeline.route(raw, args.phone, None if file_ref.is_empty() else file_ref,
                                       input_type="extraction")
    finally:
        await pipeline.aclose()
        await close_db()

    print(json.dumps(outcome.to_response(), indent=2, default=str))
    if not outcome.ok:
        sys.exit(2)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("extraction", help="path to the extraction JSON")
    parser.add_argument("--phone", required=True)
    parser.add_argument("--file-url", help="URL of the original bill to attach")
    parser.add_argument("--file-path", help="path of the original bill in the uploads bucket")
    parser.add_argument("--dry-run", action="store_true", help="print the planned calls without sending them")
    asyncio.run(main(parser.parse_args()))
