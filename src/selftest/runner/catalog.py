"""The fixed, ordered catalog of checks.

Order is part of the contract: later checks read fixtures earlier checks
wrote (the balance snapshot, the character created in this pass, the
persona to delete).
"""

from __future__ import annotations

from selftest.checks import auth, characters, chat, misc, notifications, points, social
from selftest.core.check import CategoryDefinition, CheckDefinition

TestCatalog = tuple[CategoryDefinition, ...]


def build_catalog() -> TestCatalog:
    return (
        CategoryDefinition(
            "Auth",
            (
                CheckDefinition("Session check", auth.check_session, "Operator session is active"),
                CheckDefinition("User info", auth.check_user_info, "Session exposes the operator's id and name"),
            ),
        ),
        CategoryDefinition(
            "Points",
            (
                CheckDefinition("Balance", points.check_balance, "Read free/paid balance and snapshot it"),
                CheckDefinition("Charge", points.check_charge, "Charge the configured amount"),
                CheckDefinition(
                    "Attendance",
                    points.check_attendance,
                    "Claim the daily attendance bonus; already claimed today also passes",
                ),
                CheckDefinition(
                    "Balance delta",
                    points.check_balance_delta,
                    "Balance moved by exactly what this pass charged and claimed",
                ),
            ),
        ),
        CategoryDefinition(
            "Character",
            (
                CheckDefinition("List", characters.check_list, "Public character list loads"),
                CheckDefinition(
                    "Create",
                    characters.check_create,
                    "Generate a spec (or fall back) and create a public character",
                ),
                CheckDefinition("Detail", characters.check_detail, "Character detail loads"),
                CheckDefinition(
                    "Search",
                    characters.check_search_by_tag,
                    "This pass's character is found by the discovery hashtag",
                ),
            ),
        ),
        CategoryDefinition(
            "Chat",
            (
                CheckDefinition("List", chat.check_list, "Chat list loads"),
                CheckDefinition("Create", chat.check_create, "Start a chat with the test character"),
                CheckDefinition("Send message", chat.check_send_message, "Send a message to the chat"),
            ),
        ),
        CategoryDefinition(
            "Social",
            (
                CheckDefinition("Profile", social.check_profile, "Operator profile loads"),
                CheckDefinition(
                    "Follow/unfollow",
                    social.check_follow_toggle,
                    "Follow toggles on a non-operator user and back",
                ),
                CheckDefinition("Like", social.check_like, "Favorite a character"),
                CheckDefinition("Comment", social.check_comment, "Comment on a character"),
            ),
        ),
        CategoryDefinition(
            "Notifications",
            (
                CheckDefinition("List", notifications.check_list, "Notification list loads"),
                CheckDefinition("Unread count", notifications.check_unread_count, "Unread count loads"),
                CheckDefinition(
                    "Mark read",
                    notifications.check_mark_read,
                    "Mark a notification read, seeding one if the inbox is empty",
                ),
            ),
        ),
        CategoryDefinition(
            "Other",
            (
                CheckDefinition("Ranking", misc.check_ranking, "Ranking loads"),
                CheckDefinition(
                    "Search",
                    misc.check_search_by_name,
                    "This pass's character is found by its name",
                ),
                CheckDefinition("Persona list", misc.check_persona_list, "Persona list loads"),
                CheckDefinition("Persona create", misc.check_persona_create, "Create a persona"),
                CheckDefinition(
                    "Persona delete",
                    misc.check_persona_delete,
                    "Delete the persona created in this pass",
                ),
            ),
        ),
    )


def total_checks(catalog: TestCatalog) -> int:
    return sum(len(category) for category in catalog)


def find_category(catalog: TestCatalog, name: str) -> int:
    """Index of a category by case-insensitive name.

    Raises:
        KeyError: If no category has that name.
    """
    for index, category in enumerate(catalog):
        if category.name.lower() == name.lower():
            return index
    raise KeyError(name)
