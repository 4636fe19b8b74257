#!/usr/bin/env python
"""CLI to fetch data from the Pylon API and write it as JSON or CSV.

Examples:
  python scripts/fetch_pylon_data.py --resource accounts --per-page 50 --out data/accounts.json
  python scripts/fetch_pylon_data.py --resource issues --days 7 --filter state=new --out data/issues.csv --format csv
  python scripts/fetch_pylon_data.py --resource issues --start 2024-03-01T00:00:00Z --end 2024-03-31T23:59:59Z --out data/march.json
  python scripts/fetch_pylon_data.py --resource users --id user_123 --out data/user.json
  python scripts/fetch_pylon_data.py --resource me --out data/me.json

Options:
  --mock (serve seeded fake data instead of calling the API)
  --verbose

"""
from __future__ import annotations
import argparse
import json
import logging
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd

from pylon_client import PylonClient, PylonError
from pylon_client.config import load_env_file
from pylon_client.mock_provider import MockSession

logger = logging.getLogger('fetch_pylon_data')

# resource -> (list method, get method)
RESOURCES: Dict[str, tuple] = {
    'accounts': ('list_accounts', 'get_account'),
    'articles': ('list_articles', 'get_article'),
    'attachments': ('list_attachments', 'get_attachment'),
    'contacts': ('list_contacts', 'get_contact'),
    'custom_fields': ('list_custom_fields', 'get_custom_field'),
    'issues': ('list_issues', 'get_issue'),
    'tags': ('list_tags', 'get_tag'),
    'teams': ('list_teams', 'get_team'),
    'ticket_forms': ('list_ticket_forms', 'get_ticket_form'),
    'user_roles': ('list_user_roles', 'get_user_role'),
    'users': ('list_users', 'get_user'),
    'me': (None, 'get_current_user'),
}


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description='Fetch Pylon data')
    p.add_argument('--resource', required=True, choices=sorted(RESOURCES))
    p.add_argument('--id', help='Fetch a single object instead of a listing')
    p.add_argument('--page', type=int, default=1)
    p.add_argument('--per-page', type=int, default=20)
    p.add_argument('--start', help='Issue range start (RFC3339)')
    p.add_argument('--end', help='Issue range end (RFC3339)')
    p.add_argument('--days', type=int, help='Issue range: the last N days (ignored when --start/--end are given)')
    p.add_argument('--filter', action='append', default=[], metavar='KEY=VALUE', help='Extra query filter (repeatable)')
    p.add_argument('--out', required=True, help='Output file path')
    p.add_argument('--format', choices=['json', 'csv'], help='Output format (default: from --out suffix, else json)')
    p.add_argument('--mock', action='store_true', help='Use the offline mock provider')
    p.add_argument('--verbose', action='store_true')
    return p.parse_args(argv)


def parse_filters(pairs: List[str]) -> Dict[str, str]:
    filters: Dict[str, str] = {}
    for pair in pairs:
        if '=' not in pair:
            raise SystemExit(f'Invalid --filter {pair!r}, expected KEY=VALUE')
        k, v = pair.split('=', 1)
        filters[k.strip()] = v.strip()
    return filters


def issue_range(args) -> Dict[str, Any]:
    if args.start or args.end:
        return {'start_time': args.start, 'end_time': args.end}
    if args.days:
        end = datetime.now(timezone.utc)
        return {'start_time': end - timedelta(days=args.days), 'end_time': end}
    return {}


def build_client(mock: bool, debug: bool = False) -> PylonClient:
    if mock:
        return PylonClient('mock-key', debug=debug, session=MockSession(seed=42))
    return PylonClient.from_env()


def fetch(client: PylonClient, args) -> List[Dict[str, Any]]:
    list_method, get_method = RESOURCES[args.resource]
    if args.id or list_method is None:
        method = getattr(client, get_method)
        obj = method(args.id) if list_method is not None else method()
        return [obj.to_dict()]
    kwargs: Dict[str, Any] = parse_filters(args.filter)
    if args.resource == 'issues':
        kwargs.update(issue_range(args))
    collection = getattr(client, list_method)(page=args.page, per_page=args.per_page, **kwargs)
    rl = collection._response.rate_limit
    logger.info('Fetched %d %s (rate limit remaining: %s/%s)', len(collection), args.resource, rl.remaining, rl.limit)
    return collection.to_list()


def write_output(records: List[Dict[str, Any]], out_path: Path, fmt: Optional[str]) -> None:
    fmt = fmt or ('csv' if out_path.suffix.lower() == '.csv' else 'json')
    out_path.parent.mkdir(parents=True, exist_ok=True)
    if fmt == 'csv':
        pd.json_normalize(records).to_csv(out_path, index=False)
    else:
        out_path.write_text(json.dumps(records, ensure_ascii=False, indent=2), encoding='utf-8')


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format='[%(levelname)s] %(message)s')
    load_env_file(PROJECT_ROOT / '.env')
    out_path = Path(args.out)
    try:
        with build_client(args.mock, debug=args.verbose) as client:
            records = fetch(client, args)
    except PylonError as e:
        raise SystemExit(f'[error] {type(e).__name__}: {e}') from e
    write_output(records, out_path, args.format)
    logger.info('Wrote %d record(s) to %s', len(records), out_path)
    return 0


if __name__ == '__main__':
    sys.exit(main())
