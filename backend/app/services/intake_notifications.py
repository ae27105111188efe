"""Confirmation emails for a stored intake submission."""

import logging
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

from app.config import settings
from app.entities.intake_submission import IntakeSubmission

logger = logging.getLogger(__name__)

MAX_LISTED_REPOS = 5


class IntakeNotifier(Protocol):
    def send_templated(
        self, to: str, template_id: str, model: Dict[str, Any], subject: str = ""
    ) -> bool: ...

    def send_plain(self, to: str, subject: str, body: str) -> bool: ...


def format_repo_names(names: Sequence[str]) -> str:
    """
    Human-readable list of repo names.

    ``["alpha"]`` -> ``"alpha"``, ``["alpha", "beta"]`` -> ``"alpha, and beta"``,
    seven names -> ``"a, b, c, d, e, and 2 more"``.
    """
    if not names:
        return ""
    if len(names) > MAX_LISTED_REPOS:
        listed = ", ".join(names[:MAX_LISTED_REPOS])
        return f"{listed}, and {len(names) - MAX_LISTED_REPOS} more"
    if len(names) == 1:
        return names[0]
    return f"{', '.join(names[:-1])}, and {names[-1]}"


def _display(value: Optional[int]) -> str:
    return "" if value is None else str(value)


class NotificationDispatcher:
    """Renders and sends the user confirmation and the internal notice."""

    def __init__(
        self,
        notifier: IntakeNotifier,
        operations_email: Optional[str] = None,
        template_id: Optional[str] = None,
    ):
        self.notifier = notifier
        self.operations_email = operations_email or settings.OPERATIONS_EMAIL
        self.template_id = template_id or settings.INTAKE_CONFIRMATION_TEMPLATE

    def build_user_model(
        self, submission: IntakeSubmission, queue_number: Optional[int]
    ) -> Dict[str, Any]:
        return {
            "product_url": settings.PRODUCT_URL,
            "product_name": settings.PRODUCT_NAME,
            "queue_number": _display(queue_number),
            "name": submission.name,
            "email": submission.email,
            "githubHandle": submission.github_handle,
            "shouldDesign": settings.PRODUCT_NAME if submission.should_design else "You",
            "isOneProjectPerRepo": (
                "One Per Repo" if submission.is_one_project_per_repo else "One For All"
            ),
            "notes": submission.notes,
            "repos": format_repo_names([repo.short_name for repo in submission.repos]),
            "support_email": settings.SUPPORT_EMAIL,
            "company_name": settings.COMPANY_NAME,
            "company_address": settings.COMPANY_ADDRESS,
            "sender_name": settings.SENDER_NAME,
            "help_url": settings.HELP_URL,
        }

    def build_internal_message(
        self, submission: IntakeSubmission, queue_number: Optional[int]
    ) -> Tuple[str, str]:
        subject = (
            f"New intake form submission from {submission.github_handle} / {submission.email}"
        )
        lines = [
            subject,
            f"Queue number: {_display(queue_number)}",
            f"Name: {submission.name}",
            f"Email: {submission.email}",
            f"Notes: {submission.notes}",
            f"GitHub Handle: {submission.github_handle}",
            f"Should Design: {submission.should_design}",
            f"Is One Project Per Repo: {submission.is_one_project_per_repo}",
            "",
            "Repos:",
            *[repo.full_name for repo in submission.repos],
            "",
            "Images:",
            *submission.images,
        ]
        return subject, "\n".join(lines)

    def dispatch(self, submission: IntakeSubmission, queue_number: Optional[int]) -> None:
        """Send both messages. Transport errors propagate to the caller."""
        self.notifier.send_templated(
            submission.email,
            self.template_id,
            self.build_user_model(submission, queue_number),
            subject=f"Welcome to {settings.PRODUCT_NAME}",
        )
        logger.info(f"Sent confirmation email to {submission.email}")

        subject, body = self.build_internal_message(submission, queue_number)
        self.notifier.send_plain(self.operations_email, subject, body)
        logger.info(f"Sent internal confirmation email to {self.operations_email}")
