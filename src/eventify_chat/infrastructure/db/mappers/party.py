from __future__ import annotations

from eventify_chat.domain.entities.party import PartyProfile
from eventify_chat.domain.value_objects.enums import Role
from eventify_chat.infrastructure.db.models.party import OrganizerModel, UserModel


def user_to_entity(model: UserModel) -> PartyProfile:
    return PartyProfile(
        id=model.id,
        role=Role.USER,
        name=model.user_name,
        email=model.email,
        profile_image=model.profile_image,
    )


def organizer_to_entity(model: OrganizerModel) -> PartyProfile:
    return PartyProfile(
        id=model.id,
        role=Role.ORGANIZER,
        name=model.organizer_name,
        email=model.email,
        profile_image=model.profile_image,
    )
