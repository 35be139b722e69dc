"""
Deterministic scenario replay.

A scenario describes token holders, delegations and an ordered list of
governance steps. Running it builds a fresh chain, token and DAO and
executes every step in order. Because each operation depends only on the
persisted state, its inputs and the chain clock, replaying the same
scenario always ends in the same state digest.

Scenario layout (YAML or dict):

    deployer: alice
    balances: {bob: 40000000, carol: 35000000}   # transferred from deployer
    delegations: {alice: alice, bob: bob}
    config: {proposals_max_count: 3, voting_duration_seconds: 259200}   # overrides DaoConfig
    steps:
      - create: {sender: alice, proposal: "Proposal 1"}
      - vote: {sender: bob, proposal: "Proposal 1", agree: true}
      - advance: 86400
      - transfer: {sender: alice, to: dave, amount: 10}
      - delegate: {sender: dave, to: dave}
      - create: {sender: dave, proposal: "Proposal 1"}
        expect_error: ConflictError
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from saltdao.core import governance_exceptions
from saltdao.core.config import ConfigurationError, DaoConfig
from saltdao.core.chain import LocalChain
from saltdao.core.constants import GENESIS_TIMESTAMP, PROPOSAL_ID_BYTES
from saltdao.core.contracts.salt_dao import SaltDao
from saltdao.core.contracts.salt_token import SaltToken
from saltdao.core.governance_exceptions import GovernanceError
from saltdao.governance.models import Proposal, make_proposal_id

logger = logging.getLogger(__name__)

ACTIONS = ("create", "vote", "advance", "transfer", "delegate")


class ScenarioError(Exception):
    """Raised when a scenario is malformed or a step does not behave as declared."""
    pass


@dataclass
class StepOutcome:
    index: int
    action: str
    ok: bool
    error: Optional[str] = None
    block_number: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "action": self.action,
            "ok": self.ok,
            "error": self.error,
            "block_number": self.block_number,
        }


@dataclass
class ScenarioResult:
    proposals: List[Proposal]
    events: List[Dict[str, Any]]
    steps: List[StepOutcome]
    digest: str
    block_number: int
    timestamp: int
    dao: SaltDao = field(repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "digest": self.digest,
            "block_number": self.block_number,
            "timestamp": self.timestamp,
            "proposals": [p.to_dict() for p in self.proposals],
            "events": self.events,
            "steps": [s.to_dict() for s in self.steps],
        }


def proposal_id_from_label(label: Any) -> bytes:
    """
    Hex identifiers are used as-is; any other string label is hashed.

    YAML reads an unquoted ``0x...`` value as an integer, so integers are
    taken as the identifier's numeric value.
    """
    if isinstance(label, bool):
        raise ScenarioError(f"Proposal label must be a string or integer, got {label!r}")
    if isinstance(label, int):
        if label < 0 or label.bit_length() > PROPOSAL_ID_BYTES * 8:
            raise ScenarioError(f"Proposal identifier {label:#x} does not fit in {PROPOSAL_ID_BYTES} bytes")
        return label.to_bytes(PROPOSAL_ID_BYTES, "big")
    if not isinstance(label, str):
        raise ScenarioError(f"Proposal label must be a string or integer, got {label!r}")
    if label.startswith("0x") and len(label) == 2 + PROPOSAL_ID_BYTES * 2:
        try:
            return bytes.fromhex(label[2:])
        except ValueError:
            raise ScenarioError(f"Proposal identifier {label!r} is not valid hex") from None
    return make_proposal_id(label)


def _account(value: Any, where: str) -> str:
    # Unquoted 0x... addresses arrive from YAML as integers
    if not isinstance(value, str) or not value:
        raise ScenarioError(f"{where} must be a quoted account string, got {value!r}")
    return value


def _amount(value: Any, where: str) -> int:
    if isinstance(value, bool):
        raise ScenarioError(f"{where} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ScenarioError(f"{where} must be an integer, got {value!r}") from None


def load_scenario(path: str | Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as handle:
        scenario = yaml.safe_load(handle)
    if not isinstance(scenario, dict):
        raise ScenarioError(f"Scenario {path} must contain a mapping")
    return scenario


def _error_matches(exc: Exception, expected: str) -> bool:
    if any(cls.__name__ == expected for cls in type(exc).__mro__):
        return True
    alias = getattr(governance_exceptions, expected, None)
    return isinstance(alias, type) and isinstance(exc, alias)


def _split_step(index: int, step: Any) -> tuple[str, Any, Optional[str]]:
    if not isinstance(step, Mapping):
        raise ScenarioError(f"Step {index} must be a mapping")
    actions = [key for key in step if key in ACTIONS]
    unknown = [key for key in step if key not in ACTIONS and key != "expect_error"]
    if len(actions) != 1 or unknown:
        raise ScenarioError(f"Step {index} must have exactly one action from {ACTIONS}")
    action = actions[0]
    return action, step[action], step.get("expect_error")


def _require(args: Any, index: int, *keys: str) -> Mapping[str, Any]:
    if not isinstance(args, Mapping):
        raise ScenarioError(f"Step {index} arguments must be a mapping")
    missing = [key for key in keys if key not in args]
    if missing:
        raise ScenarioError(f"Step {index} is missing {missing}")
    return args


def _execute(dao: SaltDao, token: SaltToken, chain: LocalChain, index: int, action: str, args: Any) -> None:
    where = f"Step {index}"
    if action == "create":
        args = _require(args, index, "sender", "proposal")
        dao.add_new_proposal(
            _account(args["sender"], f"{where} sender"), proposal_id_from_label(args["proposal"])
        )
    elif action == "vote":
        args = _require(args, index, "sender", "proposal", "agree")
        dao.vote_for_proposal(
            _account(args["sender"], f"{where} sender"),
            proposal_id_from_label(args["proposal"]),
            bool(args["agree"]),
        )
    elif action == "advance":
        try:
            chain.increase_time(_amount(args, f"{where} advance"))
        except ValueError as exc:
            raise ScenarioError(f"{where} has an invalid advance: {exc}") from exc
    elif action == "transfer":
        args = _require(args, index, "sender", "to", "amount")
        token.transfer(
            _account(args["sender"], f"{where} sender"),
            _account(args["to"], f"{where} recipient"),
            _amount(args["amount"], f"{where} amount"),
        )
    elif action == "delegate":
        args = _require(args, index, "sender", "to")
        token.delegate(_account(args["sender"], f"{where} sender"), _account(args["to"], f"{where} delegatee"))


def _mapping(scenario: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = scenario.get(key) or {}
    if not isinstance(value, Mapping):
        raise ScenarioError(f"Scenario {key} must be a mapping")
    return value


def _effective_config(scenario: Mapping[str, Any], config: Optional[DaoConfig]) -> DaoConfig:
    """``config`` (defaults if None) with the scenario's own ``config`` block on top."""
    base = (config or DaoConfig()).to_dict()
    try:
        return DaoConfig.from_mapping({**base, **_mapping(scenario, "config")})
    except ConfigurationError as exc:
        raise ScenarioError(f"Scenario config is invalid: {exc}") from exc


def run_scenario(scenario: Mapping[str, Any], config: Optional[DaoConfig] = None) -> ScenarioResult:
    """
    Execute ``scenario`` on a fresh chain, token and DAO.

    Args:
        scenario: Parsed scenario mapping
        config: Engine configuration; keys in the scenario's ``config``
            block override it

    Raises:
        ScenarioError: If the scenario is malformed, its setup fails, a step
            fails without ``expect_error``, or a step declared to fail succeeds
    """
    if "deployer" not in scenario:
        raise ScenarioError("Scenario needs a deployer account")
    deployer = _account(scenario["deployer"], "Scenario deployer")
    effective = _effective_config(scenario, config)

    chain = LocalChain(
        genesis_timestamp=_amount(scenario.get("genesis_timestamp", GENESIS_TIMESTAMP), "Scenario genesis_timestamp")
    )
    try:
        token = SaltToken(chain=chain, deployer=deployer)
        for account, amount in _mapping(scenario, "balances").items():
            token.transfer(
                deployer,
                _account(account, "Scenario balances account"),
                _amount(amount, f"Scenario balance of {account}"),
            )
        for account, delegatee in _mapping(scenario, "delegations").items():
            token.delegate(
                _account(account, "Scenario delegations account"),
                _account(delegatee, f"Scenario delegatee of {account}"),
            )
    except GovernanceError as exc:
        raise ScenarioError(f"Scenario setup failed with {type(exc).__name__}: {exc.message}") from exc

    dao = SaltDao.from_config(chain, token, effective)

    outcomes: List[StepOutcome] = []
    for index, step in enumerate(scenario.get("steps") or []):
        action, args, expected = _split_step(index, step)
        try:
            _execute(dao, token, chain, index, action, args)
        except GovernanceError as exc:
            if expected is None or not _error_matches(exc, str(expected)):
                raise ScenarioError(
                    f"Step {index} ({action}) failed with {type(exc).__name__}: {exc.message}"
                ) from exc
            outcomes.append(StepOutcome(index, action, False, type(exc).__name__, chain.block_number))
            continue
        if expected is not None:
            raise ScenarioError(f"Step {index} ({action}) succeeded but expected {expected}")
        outcomes.append(StepOutcome(index, action, True, None, chain.block_number))

    result = ScenarioResult(
        proposals=list(dao.get_proposals()),
        events=dao.events.to_list(),
        steps=outcomes,
        digest=dao.state_digest(),
        block_number=chain.block_number,
        timestamp=chain.timestamp,
        dao=dao,
    )
    logger.info(
        "Scenario replayed",
        extra={
            "event": "simulation.completed",
            "steps": len(outcomes),
            "digest": result.digest[:16],
            "block": result.block_number,
        },
    )
    return result
