"""
Utility package exports
"""

from servicebot.utils.helpers import prep_title_and_description, quote_description, find_user_mentions, replace_user_mentions
from servicebot.utils.tasks import TaskSpawner

__all__ = ["prep_title_and_description", "quote_description", "find_user_mentions", "replace_user_mentions", "TaskSpawner"]
