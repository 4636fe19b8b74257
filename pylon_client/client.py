from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional, Type, Union
from urllib.parse import quote, urlsplit
from .base_client import BaseClient
from .config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT, ClientConfig
from .exceptions import InvalidArgumentError
from .models import (
    Account, Article, Attachment, Collection, Contact, CustomField, Issue,
    Resource, Tag, Team, TicketForm, User, UserRole,
)
from .response import decode

Timestamp = Union[str, datetime]

DEFAULT_PAGE = 1
DEFAULT_PER_PAGE = 20
METHODS = ('GET', 'POST', 'PUT', 'PATCH', 'DELETE')


def _require(value: Any, name: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise InvalidArgumentError(f'{name} is required')
    return value


def _path_id(value: Any, name: str) -> str:
    return quote(str(_require(value, name)), safe='')


def _rfc3339(value: Timestamp) -> str:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')
    return value


def _body(params: Any) -> Dict[str, Any]:
    if not isinstance(params, Mapping):
        raise InvalidArgumentError(f'params must be a mapping, got {type(params).__name__}')
    return dict(params)


def _page_params(page: int, per_page: int) -> Dict[str, int]:
    for name, value in (('page', page), ('per_page', per_page)):
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise InvalidArgumentError(f'{name} must be a positive integer, got {value!r}')
    return {'page': page, 'per_page': per_page}


class PylonClient(BaseClient):
    """Pylon REST API client.

    Each method performs exactly one HTTP call. Single objects come back as a
    Resource subclass, listings as a Collection; both keep the ApiResponse on
    ``_response`` so rate-limit headers stay inspectable.
    """

    def __init__(self, api_key: str, base_url: str = DEFAULT_BASE_URL, debug: bool = False, timeout: Optional[float] = DEFAULT_TIMEOUT, session: Any = None):
        super().__init__(ClientConfig(api_key, base_url=base_url, debug=debug, timeout=timeout), session=session)

    @classmethod
    def from_config(cls, config: ClientConfig, session: Any = None) -> 'PylonClient':
        return cls(config.api_key, base_url=config.base_url, debug=config.debug, timeout=config.timeout, session=session)

    @classmethod
    def from_env(cls, session: Any = None) -> 'PylonClient':
        return cls.from_config(ClientConfig.from_env(), session=session)

    @property
    def api_key(self) -> str:
        return self.config.api_key

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def debug(self) -> bool:
        return self.config.debug

    def __repr__(self) -> str:
        return f'{type(self).__name__}(base_url={self.base_url!r}, debug={self.debug})'

    # -- transport helpers ------------------------------------------------

    def _get(self, path: str, params: Dict[str, Any] | None = None, model: Optional[Type[Resource]] = None, collection: bool = False) -> Any:
        return decode(self._request('GET', path, params=params), model, collection)

    def _post(self, path: str, body: Any = None, model: Optional[Type[Resource]] = None) -> Any:
        return decode(self._request('POST', path, json_body=body if body is not None else {}), model)

    def _patch(self, path: str, body: Any = None, model: Optional[Type[Resource]] = None) -> Any:
        return decode(self._request('PATCH', path, json_body=body if body is not None else {}), model)

    def _list(self, path: str, model: Type[Resource], page: int, per_page: int, filters: Dict[str, Any]) -> Collection:
        params = dict(filters)
        params.update(_page_params(page, per_page))
        return self._get(path, params=params, model=model, collection=True)

    def request(self, method: str, path: str, params: Dict[str, Any] | None = None, body: Any = None):
        """Call an endpoint without a typed wrapper; returns ``(payload, response)``."""
        method = _require(method, 'method').upper()
        if method not in METHODS:
            raise InvalidArgumentError(f'Unsupported HTTP method: {method}')
        _require(path, 'path')
        # the bearer token only ever goes to base_url
        parts = urlsplit(path)
        if parts.scheme or parts.netloc:
            raise InvalidArgumentError(f'path must be relative to base_url, got {path!r}')
        return decode(self._request(method, path, params=params, json_body=body))

    # -- accounts ---------------------------------------------------------

    def list_accounts(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Collection:
        return self._list('/accounts', Account, page, per_page, filters)

    def get_account(self, account_id: str) -> Account:
        return self._get(f"/accounts/{_path_id(account_id, 'account_id')}", model=Account)

    def create_account(self, params: Mapping[str, Any]) -> Account:
        return self._post('/accounts', _body(params), model=Account)

    def update_account(self, account_id: str, params: Mapping[str, Any]) -> Account:
        return self._patch(f"/accounts/{_path_id(account_id, 'account_id')}", _body(params), model=Account)

    # -- attachments ------------------------------------------------------

    def list_attachments(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Collection:
        return self._list('/attachments', Attachment, page, per_page, filters)

    def get_attachment(self, attachment_id: str) -> Attachment:
        return self._get(f"/attachments/{_path_id(attachment_id, 'attachment_id')}", model=Attachment)

    def create_attachment(self, file: Any = None, *, file_url: Optional[str] = None, filename: Optional[str] = None, description: Optional[str] = None) -> Attachment:
        """Upload a file (bytes, text or binary file object) or register one by URL.

        Sent as multipart/form-data; exactly one of ``file`` and ``file_url``
        must be given.
        """
        if (file is None) == (file_url is None):
            raise InvalidArgumentError('Provide exactly one of file or file_url')
        if file_url is not None:
            files = {'file_url': (None, _require(file_url, 'file_url'))}
        else:
            if isinstance(file, str):
                file = file.encode('utf-8')
            name = filename or getattr(file, 'name', None) or 'upload'
            files = {'file': (str(name).rsplit('/', 1)[-1], file)}
        data = {'description': description} if description else None
        response = self._request('POST', '/attachments', files=files, data=data)
        return decode(response, Attachment)

    def update_attachment(self, attachment_id: str, params: Mapping[str, Any]) -> Attachment:
        return self._patch(f"/attachments/{_path_id(attachment_id, 'attachment_id')}", _body(params), model=Attachment)

    # -- contacts ---------------------------------------------------------

    def list_contacts(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Collection:
        return self._list('/contacts', Contact, page, per_page, filters)

    def get_contact(self, contact_id: str) -> Contact:
        return self._get(f"/contacts/{_path_id(contact_id, 'contact_id')}", model=Contact)

    def create_contact(self, params: Mapping[str, Any]) -> Contact:
        return self._post('/contacts', _body(params), model=Contact)

    def update_contact(self, contact_id: str, params: Mapping[str, Any]) -> Contact:
        return self._patch(f"/contacts/{_path_id(contact_id, 'contact_id')}", _body(params), model=Contact)

    # -- custom fields ----------------------------------------------------

    def list_custom_fields(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Collection:
        return self._list('/custom_fields', CustomField, page, per_page, filters)

    def get_custom_field(self, custom_field_id: str) -> CustomField:
        return self._get(f"/custom_fields/{_path_id(custom_field_id, 'custom_field_id')}", model=CustomField)

    def create_custom_field(self, params: Mapping[str, Any]) -> CustomField:
        return self._post('/custom_fields', _body(params), model=CustomField)

    def update_custom_field(self, custom_field_id: str, params: Mapping[str, Any]) -> CustomField:
        return self._patch(f"/custom_fields/{_path_id(custom_field_id, 'custom_field_id')}", _body(params), model=CustomField)

    # -- issues -----------------------------------------------------------

    def list_issues(self, start_time: Optional[Timestamp] = None, end_time: Optional[Timestamp] = None, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Collection:
        """List issues created within ``[start_time, end_time]`` (RFC3339; the API caps the range at 30 days).

        Both bounds are mandatory and checked before any request is made.
        Extra keyword arguments are passed through as query filters.
        """
        start = _rfc3339(_require(start_time, 'start_time'))
        end = _rfc3339(_require(end_time, 'end_time'))
        filters = dict(filters, start_time=start, end_time=end)
        return self._list('/issues', Issue, page, per_page, filters)

    def get_issue(self, issue_id: str) -> Issue:
        return self._get(f"/issues/{_path_id(issue_id, 'issue_id')}", model=Issue)

    def create_issue(self, params: Mapping[str, Any]) -> Issue:
        return self._post('/issues', _body(params), model=Issue)

    def update_issue(self, issue_id: str, params: Mapping[str, Any]) -> Issue:
        return self._patch(f"/issues/{_path_id(issue_id, 'issue_id')}", _body(params), model=Issue)

    def snooze_issue(self, issue_id: str, snooze_until: Optional[Timestamp] = None) -> Issue:
        path = f"/issues/{_path_id(issue_id, 'issue_id')}/snooze"
        until = _rfc3339(_require(snooze_until, 'snooze_until'))
        return self._post(path, {'snooze_until': until}, model=Issue)

    # -- knowledge base ---------------------------------------------------

    def list_articles(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Collection:
        return self._list('/knowledge_base/articles', Article, page, per_page, filters)

    def get_article(self, article_id: str) -> Article:
        return self._get(f"/knowledge_base/articles/{_path_id(article_id, 'article_id')}", model=Article)

    def create_article(self, params: Mapping[str, Any]) -> Article:
        return self._post('/knowledge_base/articles', _body(params), model=Article)

    def update_article(self, article_id: str, params: Mapping[str, Any]) -> Article:
        return self._patch(f"/knowledge_base/articles/{_path_id(article_id, 'article_id')}", _body(params), model=Article)

    # -- tags -------------------------------------------------------------

    def list_tags(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Collection:
        return self._list('/tags', Tag, page, per_page, filters)

    def get_tag(self, tag_id: str) -> Tag:
        return self._get(f"/tags/{_path_id(tag_id, 'tag_id')}", model=Tag)

    def create_tag(self, name: Optional[str] = None, color: Optional[str] = None) -> Tag:
        body = {'name': _require(name, 'name')}
        if color is not None:
            body['color'] = color
        return self._post('/tags', body, model=Tag)

    def update_tag(self, tag_id: str, params: Mapping[str, Any]) -> Tag:
        return self._patch(f"/tags/{_path_id(tag_id, 'tag_id')}", _body(params), model=Tag)

    # -- teams ------------------------------------------------------------

    def list_teams(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Collection:
        return self._list('/teams', Team, page, per_page, filters)

    def get_team(self, team_id: str) -> Team:
        return self._get(f"/teams/{_path_id(team_id, 'team_id')}", model=Team)

    def create_team(self, params: Mapping[str, Any]) -> Team:
        return self._post('/teams', _body(params), model=Team)

    def update_team(self, team_id: str, params: Mapping[str, Any]) -> Team:
        return self._patch(f"/teams/{_path_id(team_id, 'team_id')}", _body(params), model=Team)

    # -- ticket forms -----------------------------------------------------

    def list_ticket_forms(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Collection:
        return self._list('/ticket-forms', TicketForm, page, per_page, filters)

    def get_ticket_form(self, ticket_form_id: str) -> TicketForm:
        return self._get(f"/ticket-forms/{_path_id(ticket_form_id, 'ticket_form_id')}", model=TicketForm)

    def create_ticket_form(self, name: Optional[str] = None, fields: Optional[list] = None) -> TicketForm:
        body = {'name': _require(name, 'name'), 'fields': list(fields or [])}
        return self._post('/ticket-forms', body, model=TicketForm)

    def update_ticket_form(self, ticket_form_id: str, params: Mapping[str, Any]) -> TicketForm:
        return self._patch(f"/ticket-forms/{_path_id(ticket_form_id, 'ticket_form_id')}", _body(params), model=TicketForm)

    # -- user roles -------------------------------------------------------

    def list_user_roles(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Collection:
        return self._list('/user_roles', UserRole, page, per_page, filters)

    def get_user_role(self, role_id: str) -> UserRole:
        return self._get(f"/user_roles/{_path_id(role_id, 'role_id')}", model=UserRole)

    def create_user_role(self, params: Mapping[str, Any]) -> UserRole:
        return self._post('/user_roles', _body(params), model=UserRole)

    def update_user_role(self, role_id: str, params: Mapping[str, Any]) -> UserRole:
        return self._patch(f"/user_roles/{_path_id(role_id, 'role_id')}", _body(params), model=UserRole)

    # -- users ------------------------------------------------------------

    def get_current_user(self) -> User:
        return self._get('/me', model=User)

    def list_users(self, page: int = DEFAULT_PAGE, per_page: int = DEFAULT_PER_PAGE, **filters: Any) -> Collection:
        return self._list('/users', User, page, per_page, filters)

    def get_user(self, user_id: str) -> User:
        return self._get(f"/users/{_path_id(user_id, 'user_id')}", model=User)

    def create_user(self, params: Mapping[str, Any]) -> User:
        return self._post('/users', _body(params), model=User)

    def update_user(self, user_id: str, params: Mapping[str, Any]) -> User:
        return self._patch(f"/users/{_path_id(user_id, 'user_id')}", _body(params), model=User)
