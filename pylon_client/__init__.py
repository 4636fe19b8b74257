"""Python client for the Pylon support platform REST API (https://api.usepylon.com).

Usage example:
    from pylon_client import PylonClient
    client = PylonClient.from_env()          # reads PYLON_API_KEY
    issues = client.list_issues(start_time='2024-03-01T00:00:00Z', end_time='2024-03-31T23:59:59Z')
    for issue in issues:
        print(issue.id, issue.title)
    print(issues._response.rate_limit.remaining)
"""
from .client import PylonClient  # noqa: F401
from .config import VERSION as __version__, ClientConfig  # noqa: F401
from .exceptions import (  # noqa: F401
    PylonError, InvalidArgumentError, AuthenticationError, ResourceNotFoundError,
    ValidationError, ApiError, RateLimitError,
)
from .models import (  # noqa: F401
    Resource, Collection, Account, Article, Attachment, Contact, CustomField,
    Issue, Tag, Team, TicketForm, User, UserRole,
)
from .response import ApiResponse, RateLimit  # noqa: F401
