# Action handlers
from servicebot.services.actions.base import Action, ActionContext
from servicebot.services.actions.create import CreateAction
from servicebot.services.actions.claim import ClaimAction
from servicebot.services.actions.complete import CompleteAction
from servicebot.services.actions.cancel import CancelAction
from servicebot.services.actions.comment import CommentAction
from servicebot.services.actions.page import PageAction
from servicebot.services.actions.change import ChangeAction

__all__ = [
    "Action",
    "ActionContext",
    "CreateAction",
    "ClaimAction",
    "CompleteAction",
    "CancelAction",
    "CommentAction",
    "PageAction",
    "ChangeAction",
]
