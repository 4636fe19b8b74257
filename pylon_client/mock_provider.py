"""Offline stand-in for the Pylon API.

``MockSession`` implements the small part of ``requests.Session`` the client
uses and serves seeded fake data, so the scripts can run with ``--mock`` and
tests can exercise whole request/response cycles without network access.
"""
from __future__ import annotations
import json
import random
import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import unquote, urlsplit
import requests
from requests.structures import CaseInsensitiveDict

_RANDOM = random.Random()

RATE_LIMIT = 1000

FIRST_NAMES = ["Ada", "Grace", "Alan", "Linus", "Margaret", "Ken", "Barbara", "Dennis", "Radia", "Guido"]
LAST_NAMES = ["Lovelace", "Hopper", "Turing", "Torvalds", "Hamilton", "Thompson", "Liskov", "Ritchie", "Perlman", "Rossum"]
COMPANIES = ["Acme", "Globex", "Initech", "Umbrella", "Hooli", "Stark", "Wayne", "Wonka", "Tyrell", "Cyberdyne"]
ISSUE_TOPICS = ["Login fails", "Export is slow", "Webhook retries", "Billing question", "SSO setup", "API 500 errors", "Missing invoice", "Dashboard blank"]
ISSUE_STATES = ["new", "waiting_on_you", "waiting_on_customer", "on_hold", "closed"]
TAG_NAMES = ["bug", "billing", "feature-request", "urgent", "onboarding", "integration"]
TEAM_NAMES = ["Support", "Success", "Engineering", "Sales"]
COLORS = ["#FF0000", "#00AA00", "#0066FF", "#FFAA00", "#9933CC", "#333333"]

COLLECTIONS = [
    'knowledge_base/articles', 'accounts', 'attachments', 'contacts', 'custom_fields',
    'issues', 'tags', 'teams', 'ticket-forms', 'user_roles', 'users',
]

REQUIRED_FIELDS = {
    'contacts': ['email'],
    'issues': ['title'],
    'tags': ['name'],
    'teams': ['name'],
    'ticket-forms': ['name'],
    'users': ['email'],
}


def seed_mock(seed: Optional[int] = None) -> None:
    if seed is not None:
        _RANDOM.seed(seed)


def _iso(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).replace(microsecond=0).isoformat().replace('+00:00', 'Z')


def _parse_iso(value: str) -> datetime:
    dt = datetime.fromisoformat(value.replace('Z', '+00:00'))
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def _person() -> Tuple[str, str]:
    first = _RANDOM.choice(FIRST_NAMES)
    last = _RANDOM.choice(LAST_NAMES)
    return f"{first} {last}", f"{first.lower()}.{last.lower()}@example.com"


def generate_mock_accounts(n: int = 10) -> List[Dict[str, Any]]:
    accounts = []
    for i in range(n):
        company = _RANDOM.choice(COMPANIES)
        accounts.append({
            'id': f"acc-{i+1}",
            'name': f"{company} {i+1}",
            'domains': [f"{company.lower()}{i+1}.example.com"],
            'owner': None,
            'tags': _RANDOM.sample(TAG_NAMES, k=_RANDOM.randint(0, 2)),
        })
    return accounts


def generate_mock_contacts(n: int = 10, accounts: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
    contacts = []
    for i in range(n):
        name, email = _person()
        account = _RANDOM.choice(accounts) if accounts else None
        contacts.append({
            'id': f"con-{i+1}",
            'name': name,
            'email': email,
            'account': {'id': account['id']} if account else None,
        })
    return contacts


def generate_mock_users(n: int = 5) -> List[Dict[str, Any]]:
    users = []
    for i in range(n):
        name, email = _person()
        users.append({
            'id': f"user-{i+1}",
            'name': name,
            'email': email,
            'role': 'admin' if i == 0 else _RANDOM.choice(['member', 'admin']),
            'status': 'active',
        })
    return users


def generate_mock_tags() -> List[Dict[str, Any]]:
    return [
        {'id': f"tag-{i+1}", 'name': name, 'color': _RANDOM.choice(COLORS)}
        for i, name in enumerate(TAG_NAMES)
    ]


def generate_mock_teams(users: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
    teams = []
    for i, name in enumerate(TEAM_NAMES):
        members = _RANDOM.sample(users, k=_RANDOM.randint(0, len(users))) if users else []
        teams.append({'id': f"team-{i+1}", 'name': name, 'users': [{'id': u['id']} for u in members]})
    return teams


def generate_mock_issues(n: int = 20, accounts: Optional[List[Dict[str, Any]]] = None, users: Optional[List[Dict[str, Any]]] = None) -> List[Dict[str, Any]]:
    now = datetime.now(timezone.utc)
    issues = []
    for i in range(n):
        created = now - timedelta(hours=_RANDOM.randint(1, 24 * 14))
        account = _RANDOM.choice(accounts) if accounts else None
        assignee = _RANDOM.choice(users) if users and _RANDOM.random() < 0.7 else None
        issues.append({
            'id': str(uuid.UUID(int=_RANDOM.getrandbits(128))),
            'number': i + 1,
            'title': _RANDOM.choice(ISSUE_TOPICS),
            'body_html': '<p>Reported through the mock provider.</p>',
            'state': _RANDOM.choice(ISSUE_STATES),
            'created_at': _iso(created),
            'account': {'id': account['id']} if account else None,
            'assignee': {'id': assignee['id']} if assignee else None,
            'tags': _RANDOM.sample(TAG_NAMES, k=_RANDOM.randint(0, 2)),
            'snoozed_until_time': None,
        })
    issues.sort(key=lambda x: x['created_at'])
    return issues


def build_response(status_code: int = 200, body: Any = None, headers: Optional[Dict[str, str]] = None, url: str = '') -> requests.Response:
    """Build a real ``requests.Response`` carrying ``body`` (JSON-encoded unless already text/bytes)."""
    resp = requests.Response()
    resp.status_code = status_code
    resp.url = url
    resp.encoding = 'utf-8'
    if isinstance(body, (str, bytes)):
        base = {'Content-Type': 'text/plain; charset=utf-8'}
        content = body.encode('utf-8') if isinstance(body, str) else body
    else:
        base = {'Content-Type': 'application/json'}
        content = b'' if body is None else json.dumps(body).encode('utf-8')
    base.update(headers or {})
    resp.headers = CaseInsensitiveDict(base)
    resp._content = content
    return resp


class MockSession:
    """In-memory transport serving fake Pylon data.

    Listings come back wrapped in ``{"data": [...]}``, single objects bare.
    Unknown ids answer 404, missing required create fields answer 422 and a
    request without a bearer token answers 401, mirroring the live API.
    """

    def __init__(self, seed: Optional[int] = None, size: int = 10):
        seed_mock(seed)
        accounts = generate_mock_accounts(size)
        users = generate_mock_users(max(1, size // 2))
        self.store: Dict[str, List[Dict[str, Any]]] = {name: [] for name in COLLECTIONS}
        self.store['accounts'] = accounts
        self.store['users'] = users
        self.store['contacts'] = generate_mock_contacts(size, accounts)
        self.store['issues'] = generate_mock_issues(size * 2, accounts, users)
        self.store['tags'] = generate_mock_tags()
        self.store['teams'] = generate_mock_teams(users)
        self.calls: List[Dict[str, Any]] = []
        self.remaining = RATE_LIMIT
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def request(self, method: str, url: str, params: Optional[Dict[str, Any]] = None, json: Any = None, files: Any = None, data: Any = None, headers: Optional[Dict[str, str]] = None, timeout: Any = None) -> requests.Response:
        self.calls.append({'method': method, 'url': url, 'params': params, 'json': json, 'files': files, 'data': data, 'headers': headers})
        self.remaining = max(0, self.remaining - 1)
        status, body = self._dispatch(method.upper(), urlsplit(url).path.strip('/'), params or {}, json, files, data, headers or {})
        rate_headers = {
            'x-rate-limit-limit': str(RATE_LIMIT),
            'x-rate-limit-remaining': str(self.remaining),
            'x-rate-limit-reset': str(int(time.time()) + 60),
        }
        return build_response(status, body, rate_headers, url=url)

    def _dispatch(self, method: str, path: str, params: Dict[str, Any], body: Any, files: Any, data: Any, headers: Dict[str, str]) -> Tuple[int, Any]:
        if not headers.get('Authorization', '').startswith('Bearer '):
            return 401, {'errors': ['Invalid API key']}
        if path == 'me':
            return 200, self.store['users'][0]
        collection, rest = self._route(path)
        if collection is None:
            return 404, {'errors': ['Resource not found']}
        items = self.store[collection]
        if not rest:
            if method == 'GET':
                return self._list(collection, items, params)
            if method == 'POST':
                return self._create(collection, items, body, files, data)
            return 405, {'error': f'{method} not allowed'}
        item_id = unquote(rest[0])
        item = next((x for x in items if str(x['id']) == item_id), None)
        if item is None:
            return 404, {'errors': ['Resource not found']}
        if len(rest) == 2 and rest[1] == 'snooze' and collection == 'issues' and method == 'POST':
            item.update({'state': 'snoozed', 'snoozed_until_time': (body or {}).get('snooze_until')})
            return 200, item
        if len(rest) > 1:
            return 404, {'errors': ['Resource not found']}
        if method == 'GET':
            return 200, item
        if method == 'PATCH':
            item.update(body or {})
            return 200, item
        return 405, {'error': f'{method} not allowed'}

    @staticmethod
    def _route(path: str) -> Tuple[Optional[str], List[str]]:
        for name in COLLECTIONS:
            if path == name or path.startswith(name + '/'):
                return name, [p for p in path[len(name):].split('/') if p]
        return None, []

    def _list(self, collection: str, items: List[Dict[str, Any]], params: Dict[str, Any]) -> Tuple[int, Any]:
        if collection == 'issues':
            if not params.get('start_time') or not params.get('end_time'):
                return 400, {'error': 'start_time and end_time are required'}
            start = _parse_iso(str(params['start_time']))
            end = _parse_iso(str(params['end_time']))
            items = [x for x in items if start <= _parse_iso(x['created_at']) <= end]
            if params.get('state'):
                items = [x for x in items if x['state'] == params['state']]
        page = int(params.get('page', 1))
        per_page = int(params.get('per_page', 20))
        offset = (page - 1) * per_page
        return 200, {'data': items[offset:offset + per_page]}

    def _create(self, collection: str, items: List[Dict[str, Any]], body: Any, files: Any, data: Any) -> Tuple[int, Any]:
        if collection == 'attachments':
            return 200, self._create_attachment(items, files or {}, data or {})
        fields = dict(body or {})
        missing = [f for f in REQUIRED_FIELDS.get(collection, []) if not fields.get(f)]
        if missing:
            return 422, {'errors': [f"{missing[0]} is required"]}
        fields['id'] = f"{collection.rsplit('/', 1)[-1]}-{len(items) + 1}"
        if collection == 'issues':
            fields.setdefault('state', 'new')
            fields.setdefault('created_at', _iso(datetime.now(timezone.utc)))
        items.append(fields)
        return 200, fields

    @staticmethod
    def _create_attachment(items: List[Dict[str, Any]], files: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
        if 'file_url' in files:
            url = files['file_url'][1]
            name = url.rsplit('/', 1)[-1]
        else:
            name = files['file'][0]
            url = f"https://assets.example.com/{name}"
        record = {'id': f"att-{len(items) + 1}", 'name': name, 'url': url, 'description': data.get('description')}
        items.append(record)
        return record
