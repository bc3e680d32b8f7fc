# Overview: Till operators (cashiers) for a device, persisted in local settings.

from __future__ import annotations

import uuid
from dataclasses import dataclass, replace

from ndizi.client.local_store import LocalStore
from ndizi.time_utils import to_utc_z, utcnow

OPERATORS_SETTING_KEY = "operators-storage"


@dataclass(frozen=True)
class OperatorsState:
    operators: tuple = ()
    current_operator_id: str | None = None


def load_operators(store: LocalStore) -> OperatorsState:
    saved = store.get_setting(OPERATORS_SETTING_KEY) or {}
    return OperatorsState(
        operators=tuple(saved.get("operators") or []),
        current_operator_id=saved.get("currentOperatorId"),
    )


def _persist(state: OperatorsState, store: LocalStore) -> OperatorsState:
    store.save_setting(
        OPERATORS_SETTING_KEY,
        {"operators": list(state.operators), "currentOperatorId": state.current_operator_id},
    )
    return state


def add_operator(state: OperatorsState, store: LocalStore, operator: dict) -> OperatorsState:
    operator = {
        "id": str(uuid.uuid4()),
        "role": "cashier",
        "isActive": True,
        "createdAt": to_utc_z(utcnow()),
        **operator,
    }
    return _persist(replace(state, operators=state.operators + (operator,)), store)


def update_operator(state: OperatorsState, store: LocalStore, operator_id: str, updates: dict) -> OperatorsState:
    operators = tuple(
        {**op, **updates, "id": operator_id} if op["id"] == operator_id else op
        for op in state.operators
    )
    return _persist(replace(state, operators=operators), store)


def delete_operator(state: OperatorsState, store: LocalStore, operator_id: str) -> OperatorsState:
    current = None if state.current_operator_id == operator_id else state.current_operator_id
    operators = tuple(op for op in state.operators if op["id"] != operator_id)
    return _persist(replace(state, operators=operators, current_operator_id=current), store)


def set_current_operator(state: OperatorsState, store: LocalStore, operator_id: str | None) -> OperatorsState:
    return _persist(replace(state, current_operator_id=operator_id), store)


def current_operator(state: OperatorsState) -> dict | None:
    if not state.current_operator_id:
        return None
    return next((op for op in state.operators if op["id"] == state.current_operator_id), None)
