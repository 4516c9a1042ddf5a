"""
TRQP Vocabulary

Standard actions of the Trust Registry Query Protocol and their mapping
to the entity kinds the registry stores.
"""

from typing import Optional

from trustregistry.models import EntityKind

ACTION_ISSUE = "issue"
ACTION_VERIFY = "verify"
ACTION_RECOGNIZE = "recognize"
ACTION_DELEGATE = "delegate"
ACTION_GOVERN = "govern"

TRQP_ACTIONS: tuple[str, ...] = (
    ACTION_ISSUE,
    ACTION_VERIFY,
    ACTION_RECOGNIZE,
    ACTION_DELEGATE,
    ACTION_GOVERN,
)

ACTION_DESCRIPTIONS: dict[str, str] = {
    ACTION_ISSUE: "Authorize entity to issue credentials of a specific type",
    ACTION_VERIFY: "Authorize entity to verify credentials of a specific type",
    ACTION_RECOGNIZE: "Recognize another authority as a peer",
    ACTION_DELEGATE: "Delegate authority to another entity",
    ACTION_GOVERN: "Governance authority over a specific domain",
}

_ACTION_TO_KIND: dict[str, EntityKind] = {
    ACTION_ISSUE: "issuer",
    ACTION_VERIFY: "verifier",
}


def is_valid_action(action: str) -> bool:
    """Check if ``action`` is one of the standard TRQP actions."""
    return action in TRQP_ACTIONS


def action_to_entity_kind(action: str) -> Optional[EntityKind]:
    """Map an authorization action to the entity kind it applies to.

    Only ``issue`` and ``verify`` map to an entity kind; the comparison
    is case-sensitive.
    """
    return _ACTION_TO_KIND.get(action)


def entity_kind_to_action(kind: str) -> str:
    """Map an entity kind back to its action, passing unknown kinds through."""
    for action, mapped in _ACTION_TO_KIND.items():
        if mapped == kind.lower():
            return action
    return kind
