import json
import pandas as pd
import pytest


@pytest.fixture
def fetch_script(load_script):
    return load_script('fetch_pylon_data')


@pytest.fixture
def validate_script(load_script):
    return load_script('validate_api')


@pytest.mark.dependency()
def test_fetch_accounts_to_json(fetch_script, tmp_path):
    out = tmp_path / 'accounts.json'
    assert fetch_script.main(['--resource', 'accounts', '--mock', '--out', str(out)]) == 0
    data = json.loads(out.read_text(encoding='utf-8'))
    assert isinstance(data, list)
    assert len(data) == 10
    assert all('id' in row for row in data)


@pytest.mark.dependency(depends=['test_fetch_accounts_to_json'])
def test_fetch_issues_to_csv(fetch_script, tmp_path):
    out = tmp_path / 'issues.csv'
    fetch_script.main(['--resource', 'issues', '--days', '30', '--per-page', '100', '--mock', '--out', str(out)])
    df = pd.read_csv(out)
    assert {'id', 'title', 'state', 'created_at'} <= set(df.columns)
    assert len(df) == 20


@pytest.mark.dependency(depends=['test_fetch_accounts_to_json'])
def test_fetch_single_object_and_me(fetch_script, tmp_path):
    out = tmp_path / 'me.json'
    fetch_script.main(['--resource', 'me', '--mock', '--out', str(out)])
    me = json.loads(out.read_text(encoding='utf-8'))
    assert me[0]['id'] == 'user-1'
    out = tmp_path / 'account.json'
    fetch_script.main(['--resource', 'accounts', '--id', 'acc-2', '--mock', '--out', str(out)])
    assert json.loads(out.read_text(encoding='utf-8'))[0]['id'] == 'acc-2'


def test_fetch_issues_without_range_exits(fetch_script, tmp_path):
    with pytest.raises(SystemExit, match='start_time is required'):
        fetch_script.main(['--resource', 'issues', '--mock', '--out', str(tmp_path / 'x.json')])
    assert not (tmp_path / 'x.json').exists()


def test_fetch_unknown_id_exits(fetch_script, tmp_path):
    with pytest.raises(SystemExit, match='ResourceNotFoundError'):
        fetch_script.main(['--resource', 'teams', '--id', 'nope', '--mock', '--out', str(tmp_path / 'x.json')])


def test_parse_filters(fetch_script):
    assert fetch_script.parse_filters(['state=new', 'account_id = acc-1']) == {'state': 'new', 'account_id': 'acc-1'}
    with pytest.raises(SystemExit):
        fetch_script.parse_filters(['broken'])


def test_mask(validate_script):
    assert validate_script.mask('abcdefghijkl') == 'abcd...ijkl'
    assert validate_script.mask('abc') == '***'
    assert validate_script.mask(None) is None


def test_validate_with_mock_writes_report(validate_script, tmp_path, capsys):
    report = tmp_path / 'reports' / 'api_validation.csv'
    assert validate_script.main(['--mock', '--report', str(report)]) == 0
    df = pd.read_csv(report, keep_default_na=False)
    assert list(df['endpoint']) == ['/me', '/accounts', '/issues', '/teams', '/tags']
    assert set(df['status']) <= {'Success', 'Empty'}
    me_fields = df.loc[df['endpoint'] == '/me', 'fields'].iloc[0].split(',')
    assert {'email', 'id', 'name', 'role'} <= set(me_fields)
    out = capsys.readouterr().out
    assert '[VALIDATION REPORT]' in out
    assert '5/5 endpoints validated' in out


def test_validate_records_failures(validate_script):
    class Broken:
        def request(self, *args, **kwargs):
            from pylon_client.mock_provider import build_response
            return build_response(401, {'errors': ['Invalid API key']})
    from pylon_client import PylonClient
    df = validate_script.validate(PylonClient('bad', session=Broken()))
    assert set(df['status']) == {'Failed'}
    assert df['error'].str.contains('AuthenticationError').all()


def test_validate_without_key_skips(validate_script, monkeypatch, capsys):
    monkeypatch.setenv('PYLON_API_KEY', '')
    monkeypatch.setattr(validate_script, 'load_env_file', lambda path: None)
    assert validate_script.main([]) == 1
    assert 'Skipping live validation' in capsys.readouterr().out
