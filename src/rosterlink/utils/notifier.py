"""Homework notification side channel.

Delivery, retry and formatting belong to whatever sits behind the notifier.
The roster service only emits "this child has new homework" with the accounts
to tell, and never waits on or fails because of the outcome.
"""

import logging
from typing import List

logger = logging.getLogger(__name__)


class HomeworkNotifier:
    """Default notifier: records the emission in the log."""

    def notify_new_homework(
        self, student_name: str, homework_title: str, account_ids: List[str]
    ) -> None:
        logger.info(
            "New homework '%s' for %s -> notify %s", homework_title, student_name, account_ids
        )


_notifier: HomeworkNotifier = HomeworkNotifier()


def get_notifier() -> HomeworkNotifier:
    return _notifier


def set_notifier(notifier: HomeworkNotifier) -> None:
    """Replace the process-wide notifier (e.g. with a push gateway client)."""
    global _notifier
    _notifier = notifier
