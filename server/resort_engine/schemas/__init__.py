"""Pydantic schemas for request/response validation."""

from .allocation import *  # noqa: F403
from .availability import *  # noqa: F403
from .common import *  # noqa: F403
from .health import *  # noqa: F403
from .rate import *  # noqa: F403
