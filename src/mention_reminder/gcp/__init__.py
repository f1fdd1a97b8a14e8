"""Google Cloud adapters: metadata-server tokens, Secret Manager, Cloud Tasks."""

from mention_reminder.gcp.auth import MetadataTokenProvider
from mention_reminder.gcp.secrets import SecretManagerStore
from mention_reminder.gcp.tasks import CloudTasksScheduler

__all__ = [
    "CloudTasksScheduler",
    "MetadataTokenProvider",
    "SecretManagerStore",
]
