"""Account registry operations.

Pure functions over a tuple of accounts: every operation returns new tuples
and leaves its arguments alone. Expected failures come back as ``Left``.
"""

import logging
import math
from dataclasses import replace
from typing import Any
from uuid import uuid4

from budget_core.domain import Account, Entry, ACCOUNT_TYPES, ALLOCATION, SAVINGS
from budget_core.functional import Either, Right, Maybe, failure, safe_account

logger = logging.getLogger(__name__)

DEFAULT_ACCOUNT_NAME = "New Account"
EDITABLE_FIELDS = ("name", "type", "balance", "expected_return", "is_active")


def _name_taken(accounts: tuple[Account, ...], name: str, exclude_id: str | None = None) -> bool:
    key = name.strip().lower()
    return any(a.name.strip().lower() == key for a in accounts if a.id != exclude_id)


def _is_finite_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def find_account(accounts: tuple[Account, ...], account_id: str) -> Maybe[Account]:
    return safe_account(accounts, account_id)


def create_account(
    accounts: tuple[Account, ...],
    name: str = DEFAULT_ACCOUNT_NAME,
    type: str = SAVINGS,
    balance: float = 0.0,
    expected_return: float = 0.0,
) -> tuple[tuple[Account, ...], Account]:
    # numbered suffix keeps names unique: "New Account", "New Account 2", ...
    base = name.strip() or DEFAULT_ACCOUNT_NAME
    candidate, n = base, 1
    while _name_taken(accounts, candidate):
        n += 1
        candidate = f"{base} {n}"

    account = Account(
        id=str(uuid4()),
        name=candidate,
        type=type if type in ACCOUNT_TYPES else SAVINGS,
        balance=balance,
        expected_return=expected_return,
        is_active=True,
    )
    logger.debug("Created account %s (%s)", account.id, account.name)
    return accounts + (account,), account


def validate_account_changes(
    accounts: tuple[Account, ...], account: Account, changes: dict[str, Any]
) -> Either[dict, dict[str, Any]]:
    unknown = sorted(set(changes) - set(EDITABLE_FIELDS))
    if unknown:
        return failure(
            "invalid_field",
            f"Cannot update {', '.join(unknown)}",
            fields=tuple(unknown),
        )

    if "is_active" in changes and not isinstance(changes["is_active"], bool):
        return failure(
            "invalid_field",
            "Active flag must be true or false",
            fields=("is_active",),
            value=changes["is_active"],
        )

    if "name" in changes:
        name = changes["name"]
        if not isinstance(name, str) or not name.strip():
            return failure("invalid_name", "Account name cannot be empty")
        if _name_taken(accounts, name, exclude_id=account.id):
            return failure(
                "duplicate_name",
                f"An account named '{name.strip()}' already exists",
                name=name.strip(),
            )
        changes = {**changes, "name": name.strip()}

    if "type" in changes and changes["type"] not in ACCOUNT_TYPES:
        return failure(
            "invalid_type",
            f"Account type must be one of {', '.join(ACCOUNT_TYPES)}",
            type=changes["type"],
        )

    for field_name in ("balance", "expected_return"):
        if field_name in changes and not _is_finite_number(changes[field_name]):
            return failure(
                "invalid_number",
                f"{field_name.replace('_', ' ').capitalize()} must be a finite number",
                field=field_name,
                value=changes[field_name],
            )

    return Right(changes)


def update_account(
    accounts: tuple[Account, ...], account_id: str, **changes: Any
) -> Either[dict, tuple[Account, ...]]:
    found = find_account(accounts, account_id)
    if found.is_none():
        return failure(
            "account_not_found",
            f"Account with ID {account_id} does not exist",
            account_id=account_id,
        )
    account = found.get_or_else(None)

    def apply(valid: dict[str, Any]) -> Either[dict, tuple[Account, ...]]:
        updated = replace(account, **valid)
        return Right(tuple(updated if a.id == account_id else a for a in accounts))

    result = validate_account_changes(accounts, account, changes).bind(apply)
    if result.is_left():
        logger.info("Rejected update of account %s: %s", account_id, result.get_error()["message"])
    return result


def dependent_entries(entries: tuple[Entry, ...], account_id: str) -> tuple[Entry, ...]:
    """Allocation entries that feed ``account_id``. This is the delete dry run."""
    return tuple(e for e in entries if e.type == ALLOCATION and e.target_account == account_id)


def delete_account(
    accounts: tuple[Account, ...],
    entries: tuple[Entry, ...],
    account_id: str,
    confirm: bool = False,
) -> Either[dict, tuple[tuple[Account, ...], tuple[Entry, ...]]]:
    """Remove an account.

    If allocations still target the account nothing changes unless
    ``confirm`` is set; the ``Left`` lists the dependents so the caller can
    ask. With ``confirm`` the dependents are removed together with the
    account.
    """
    if find_account(accounts, account_id).is_none():
        return failure(
            "account_not_found",
            f"Account with ID {account_id} does not exist",
            account_id=account_id,
        )

    dependents = dependent_entries(entries, account_id)
    if dependents and not confirm:
        return failure(
            "delete_cancelled",
            f"{len(dependents)} allocation(s) still target this account",
            account_id=account_id,
            count=len(dependents),
            dependents=tuple(e.id for e in dependents),
        )

    dropped = {e.id for e in dependents}
    remaining_accounts = tuple(a for a in accounts if a.id != account_id)
    remaining_entries = tuple(e for e in entries if e.id not in dropped)
    logger.info("Deleted account %s and %d dependent allocation(s)", account_id, len(dropped))
    return Right((remaining_accounts, remaining_entries))
