from __future__ import annotations

from adopte_chat.domain.entities.user import User
from adopte_chat.infrastructure.db.models.user import UserModel


def model_to_entity(model: UserModel) -> User:
    """Profile relationships are optional: unloaded ones map to None."""
    profile = model.student_profile
    company = model.company
    return User(
        id=model.id,
        email=model.email,
        role=model.role,
        is_active=model.is_active,
        first_name=profile.first_name if profile else None,
        last_name=profile.last_name if profile else None,
        company_name=company.name if company else None,
    )
