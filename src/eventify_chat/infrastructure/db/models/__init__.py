"""Import all models so Base.metadata sees every table."""
from eventify_chat.infrastructure.db.models.conversation import ConversationModel
from eventify_chat.infrastructure.db.models.message import MessageModel
from eventify_chat.infrastructure.db.models.party import OrganizerModel, UserModel

__all__ = [
    "ConversationModel",
    "MessageModel",
    "OrganizerModel",
    "UserModel",
]
