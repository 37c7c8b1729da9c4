"""
Backend service clients.

Modules:
- api_client: shared httpx plumbing and ApiError mapping
- content_client: courses, lessons, slides
- identity_client: users, students, activity pings
- progress_client: per-course progress records
"""
from .api_client import ApiClient
from .content_client import ContentClient
from .identity_client import IdentityClient
from .progress_client import ProgressClient

__all__ = ["ApiClient", "ContentClient", "IdentityClient", "ProgressClient"]
