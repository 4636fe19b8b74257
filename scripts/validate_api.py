#!/usr/bin/env python
"""Environment diagnostics and live validation of Pylon resource field sets.

Usage:
  python scripts/validate_api.py [--report reports/api_validation.csv] [--mock]

Prints which PYLON_* variables are present (values masked), then calls a few
read endpoints with per_page=1 and reports the field names each resource
actually carries. Useful to spot fields the API added or dropped.
"""
from __future__ import annotations
import argparse
import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pandas as pd

from pylon_client import Collection, PylonClient, PylonError
from pylon_client.config import load_env_file
from pylon_client.mock_provider import MockSession

logger = logging.getLogger('validate_api')

MANDATORY = ['PYLON_API_KEY']
OPTIONAL = ['PYLON_BASE_URL', 'PYLON_DEBUG', 'PYLON_TIMEOUT']
SECRETS = {'PYLON_API_KEY'}


def mask(val: str | None) -> str | None:
    if not val:
        return val
    if len(val) <= 6:
        return '*' * len(val)
    return val[:4] + '...' + val[-4:]


def check_presence() -> Dict[str, str]:
    return {k: 'OK' if (os.getenv(k) or '').strip() else 'MISSING' for k in MANDATORY + OPTIONAL}


def print_presence() -> None:
    print('\n[VARIABLE PRESENCE]')
    widest = max(len(k) for k in MANDATORY + OPTIONAL)
    for k, status in check_presence().items():
        raw = os.getenv(k)
        shown = mask(raw) if k in SECRETS else raw
        required = 'required' if k in MANDATORY else 'optional'
        print(f"  {k.ljust(widest)} : {status:<8} {required:<9} {'' if status != 'OK' else shown}")
    print()


def checks(client: PylonClient) -> List[tuple]:
    end = datetime.now(timezone.utc)
    start = end - timedelta(days=7)
    return [
        ('/me', 'User', client.get_current_user),
        ('/accounts', 'Account', lambda: client.list_accounts(per_page=1)),
        ('/issues', 'Issue', lambda: client.list_issues(start_time=start, end_time=end, per_page=1)),
        ('/teams', 'Team', lambda: client.list_teams(per_page=1)),
        ('/tags', 'Tag', lambda: client.list_tags(per_page=1)),
    ]


def run_check(endpoint: str, model: str, call: Callable[[], Any]) -> Dict[str, Any]:
    row: Dict[str, Any] = {'endpoint': endpoint, 'model': model, 'fields': '', 'status': 'Success', 'error': ''}
    try:
        result = call()
    except PylonError as e:
        row.update(status='Failed', error=f'{type(e).__name__}: {e}')
        return row
    obj = result[0] if isinstance(result, Collection) and len(result) else result
    if isinstance(obj, Collection):
        row['status'] = 'Empty'
    else:
        row['fields'] = ','.join(sorted(obj.keys()))
    return row


def validate(client: PylonClient) -> pd.DataFrame:
    rows = []
    for endpoint, model, call in checks(client):
        row = run_check(endpoint, model, call)
        logger.info('%s %s: %s', endpoint, model, row['status'])
        rows.append(row)
    return pd.DataFrame(rows, columns=['endpoint', 'model', 'fields', 'status', 'error'])


def print_report(df: pd.DataFrame) -> None:
    print('\n[VALIDATION REPORT]')
    for row in df.itertuples(index=False):
        print(f"- {row.endpoint} ({row.model}): {row.status}")
        if row.fields:
            print(f"    fields: {row.fields}")
        if row.error:
            print(f"    error : {row.error}")
    ok = int((df['status'] != 'Failed').sum())
    print(f"\n{ok}/{len(df)} endpoints validated\n")


def parse_args(argv: Optional[List[str]] = None):
    p = argparse.ArgumentParser(description='Validate Pylon API access and resource fields')
    p.add_argument('--report', help='Write the report as CSV to this path')
    p.add_argument('--mock', action='store_true', help='Use the offline mock provider')
    p.add_argument('--verbose', action='store_true')
    return p.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format='[%(levelname)s] %(message)s')
    load_env_file(PROJECT_ROOT / '.env')
    print_presence()
    if args.mock:
        client = PylonClient('mock-key', session=MockSession(seed=42))
    else:
        if check_presence()['PYLON_API_KEY'] != 'OK':
            print('[pylon] Skipping live validation (missing: PYLON_API_KEY)')
            return 1
        client = PylonClient.from_env()
    with client:
        df = validate(client)
    print_report(df)
    if args.report:
        out = Path(args.report)
        out.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(out, index=False)
        print(f'[done] Wrote {out}')
    return 0 if (df['status'] != 'Failed').all() else 2


if __name__ == '__main__':
    sys.exit(main())
