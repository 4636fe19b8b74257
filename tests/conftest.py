import importlib.util
import sys
from pathlib import Path
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from pylon_client import PylonClient
from pylon_client.mock_provider import build_response

API_KEY = 'test_api_key'
RATE_LIMIT_HEADERS = {
    'x-rate-limit-limit': '100',
    'x-rate-limit-remaining': '99',
    'x-rate-limit-reset': '1710417600',
}


class StubSession:
    """Records every request and answers from a queue of canned responses."""

    def __init__(self):
        self.responses = []
        self.calls = []
        self.closed = False

    def queue(self, status=200, body=None, headers=None):
        self.responses.append((status, body, headers))

    def request(self, method, url, params=None, json=None, files=None, data=None, headers=None, timeout=None):
        self.calls.append({
            'method': method, 'url': url, 'params': params, 'json': json,
            'files': files, 'data': data, 'headers': headers, 'timeout': timeout,
        })
        status, body, extra = self.responses.pop(0) if self.responses else (200, {}, None)
        merged = dict(RATE_LIMIT_HEADERS)
        merged.update(extra or {})
        return build_response(status, body, merged, url=url)

    def close(self):
        self.closed = True


@pytest.fixture
def session():
    return StubSession()


@pytest.fixture
def client(session):
    return PylonClient(API_KEY, session=session)


@pytest.fixture
def load_script():
    def _load(name):
        path = PROJECT_ROOT / 'scripts' / f'{name}.py'
        spec = importlib.util.spec_from_file_location(name, path)
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module
    return _load
