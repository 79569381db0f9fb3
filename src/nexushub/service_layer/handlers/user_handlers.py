"""Handlers for user accounts."""

from collections.abc import Callable
from dataclasses import fields, replace

from nexushub.domain.documents import User
from nexushub.domain.errors import (
    DuplicateEmailError,
    ForbiddenError,
    InvalidInputError,
    NotFoundError,
)
from nexushub.domain.value_objects import NotificationPreferences, Privacy
from nexushub.interfaces.collection import Set, Update, normalize_id
from nexushub.interfaces.id_generator import IdGenerator
from nexushub.interfaces.unit_of_work import AbstractUnitOfWork
from nexushub.service_layer import commands
from nexushub.service_layer.coordinator import WorkResult

from .helpers import acting_user_id, start_run

AVATAR_URL = "https://placehold.co/100x100.png?text={initial}"

PROFILE_FIELDS = frozenset(
    {"name", "bio", "avatar_url", "notification_preferences", "privacy"}
)
PREFERENCE_FIELDS = frozenset(f.name for f in fields(NotificationPreferences))


def default_avatar_url(name: str) -> str:
    return AVATAR_URL.format(initial=(name or "U")[0])


def register_user(
    cmd: commands.RegisterUser, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Create a user. Emails are unique regardless of case."""

    name = cmd.name.strip()
    email = cmd.email.strip().lower()
    errors = {}
    if not name:
        errors["name"] = ["Required."]
    if "@" not in email:
        errors["email"] = ["Must be a valid email address."]
    if errors:
        raise InvalidInputError("Invalid user data.", errors)

    run = start_run("register_user", uow, id_generator)
    with uow, run:
        run.check(
            "email not taken",
            uow.users.find_one({"email": email}) is None,
            DuplicateEmailError(email),
        )
        user = User(
            id=id_generator.new_id(),
            name=name,
            email=email,
            avatar_url=cmd.avatar_url,
            bio=cmd.bio,
        )
        run.primary("insert user", uow.users.insert_one, user)
        run.finish("User registered successfully!", user=user)
        uow.commit()

    return run.result


def _profile_changes(cmd: commands.UpdateProfile) -> dict:
    unknown = sorted(set(cmd.changes) - PROFILE_FIELDS)
    if unknown:
        raise InvalidInputError(
            "Invalid profile data.", {name: ["Cannot be updated."] for name in unknown}
        )
    changes = dict(cmd.changes)
    if "name" in changes:
        changes["name"] = changes["name"].strip()
        if not changes["name"]:
            raise InvalidInputError("Invalid profile data.", {"name": ["Required."]})
    if "bio" in changes:
        changes["bio"] = changes["bio"] or ""
    if "privacy" in changes:
        changes["privacy"] = Privacy(changes["privacy"])
    preferences = changes.get("notification_preferences")
    if isinstance(preferences, dict) and not set(preferences) <= PREFERENCE_FIELDS:
        raise InvalidInputError(
            "Invalid profile data.",
            {"notificationPreferences": ["Unknown preference."]},
        )
    return changes


def update_profile(
    cmd: commands.UpdateProfile, uow: AbstractUnitOfWork, id_generator: IdGenerator
) -> WorkResult:
    """Change the acting user's own profile.

    A blank avatar URL is replaced by a placeholder showing the initial of
    the (possibly new) name.
    """

    actor_id = acting_user_id(cmd.actor_id)
    user_id = normalize_id(cmd.user_id)
    changes = _profile_changes(cmd)
    run = start_run("update_profile", uow, id_generator)

    with uow, run:
        user = run.require(
            "user exists", uow.users.find_one({"id": user_id}), NotFoundError("User", user_id)
        )
        run.check(
            "actor owns profile",
            actor_id == user_id,
            ForbiddenError("You can only update your own profile."),
        )
        if "avatar_url" in changes and not changes["avatar_url"]:
            changes["avatar_url"] = default_avatar_url(changes.get("name", user.name))
        if isinstance(changes.get("notification_preferences"), dict):
            changes["notification_preferences"] = replace(
                user.notification_preferences, **changes["notification_preferences"]
            )
        changed = {k: v for k, v in changes.items() if getattr(user, k) != v}
        run.noop_if("something to change", not changed, "No update fields provided.", user=user)
        run.primary(
            "update profile",
            uow.users.update_one,
            {"id": user_id},
            Update(*(Set(name, value) for name, value in changed.items())),
        )
        updated = uow.users.find_one({"id": user_id})
        if updated is None:
            raise NotFoundError("User", user_id)
        run.finish("Profile updated successfully!", user=updated)
        uow.commit()

    return run.result


COMMAND_HANDLERS: dict[type, Callable[..., WorkResult]] = {
    commands.RegisterUser: register_user,
    commands.UpdateProfile: update_profile,
}
