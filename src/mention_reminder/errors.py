"""Error kinds shared by the reminder core and its adapters.

Adapters translate library exceptions (SQLAlchemyError, SlackApiError,
httpx.HTTPError) into these classes so the orchestrator only ever sees
ReminderError subclasses.
"""


class ReminderError(Exception):
    """Base class for every error raised by the reminder service."""


class InvalidError(ReminderError):
    """A required field is missing, blank, or out of range."""


class NotFoundError(ReminderError):
    """A tenant or watch record does not exist."""


class MentionNotFoundError(NotFoundError):
    """No watch record exists for the given key."""


class TenantNotFoundError(NotFoundError):
    """The workspace has not been installed."""


class ChatPlatformError(ReminderError):
    """A Slack Web API call failed."""


class ReplyCheckError(ChatPlatformError):
    """The chat platform could not answer whether the user replied."""


class NotifyError(ChatPlatformError):
    """A thread post or direct message could not be delivered."""


class ScheduleError(ReminderError):
    """A delayed callback could not be enqueued."""


class PersistenceError(ReminderError):
    """The document store failed for a reason other than a missing record."""


class FlagWriteError(PersistenceError):
    """A completion flag could not be written after a notification was sent.

    A redelivered callback will resend the notification, so this is logged
    separately from ordinary persistence failures.
    """


class CredentialError(ReminderError):
    """The bot credential for a workspace could not be loaded."""
