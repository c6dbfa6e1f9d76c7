"""Role-based landing paths after signup / login."""

from __future__ import annotations

ROLE_HOME_PATHS: dict[str, str] = {
    "learner": "/courses",
    "instructor": "/instructor/dashboard",
}

ROLE_HOME_LABELS: dict[str, str] = {
    "learner": "코스 카탈로그",
    "instructor": "강사 대시보드",
}


def get_role_based_redirect_path(role: str) -> str:
    return ROLE_HOME_PATHS.get(role, "/")


def get_role_home_label(role: str) -> str:
    """Human-readable name of the role's landing page."""
    return ROLE_HOME_LABELS.get(role, ROLE_HOME_LABELS["instructor"])
