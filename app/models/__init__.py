"""
LaCasa Models
Firestore document representations and data models.
"""

from app.models.user import UserModel, ROLES
from app.models.community import PostModel, CommentModel, ToolModel, NotificationModel
from app.models.store import ProductModel, PurchaseModel, ProductReviewModel
from app.models.mission import MissionDefinition, MissionState
from app.models.chat import DirectMessageModel, GlobalMessageModel
from app.models.tutorial import TopicModel, LessonModel, TutorialViewModel, TutorialReviewModel
from app.models.support import TicketModel, TicketMessageModel

__all__ = [
    "UserModel",
    "ROLES",
    "PostModel",
    "CommentModel",
    "ToolModel",
    "NotificationModel",
    "ProductModel",
    "PurchaseModel",
    "ProductReviewModel",
    "MissionDefinition",
    "MissionState",
    "DirectMessageModel",
    "GlobalMessageModel",
    "TopicModel",
    "LessonModel",
    "TutorialViewModel",
    "TutorialReviewModel",
    "TicketModel",
    "TicketMessageModel",
]
