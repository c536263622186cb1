"""Ordered identity-gate policy chain.

Rules are ``(predicate, blocking reason)`` pairs evaluated in a fixed
order: every required identity provider first, then the username rule.
The first blocking reason wins; a verified identity satisfies the
username rule.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from spotiqueue.configstore.schemas import RuntimeConfig
from spotiqueue.fingerprints.providers import IdentityProvider

READY = "ready"
NEEDS_VERIFICATION = "needs_verification"
NEEDS_USERNAME = "needs_username"


@dataclass(frozen=True)
class GateSubject:
    username: Optional[str]
    verified_providers: frozenset[str] = frozenset()


@dataclass(frozen=True)
class GateRule:
    reason: str
    blocks: Callable[[GateSubject], bool]
    provider: Optional[IdentityProvider] = None


@dataclass(frozen=True)
class GateOutcome:
    state: str
    missing_providers: list[IdentityProvider] = field(default_factory=list)

    @property
    def unconfigured_providers(self) -> list[IdentityProvider]:
        return [p for p in self.missing_providers if not p.configured()]

    def needs(self, provider_name: str) -> bool:
        return any(p.name == provider_name for p in self.missing_providers)


def _needs_provider(provider: IdentityProvider) -> Callable[[GateSubject], bool]:
    return lambda subject: provider.name not in subject.verified_providers


def _needs_username(subject: GateSubject) -> bool:
    return not subject.username and not subject.verified_providers


def build_gate_chain(
    providers: list[IdentityProvider], config: RuntimeConfig
) -> list[GateRule]:
    rules = [
        GateRule(NEEDS_VERIFICATION, _needs_provider(p), provider=p)
        for p in providers
        if p.required
    ]
    if config.require_username:
        rules.append(GateRule(NEEDS_USERNAME, _needs_username))
    return rules


def evaluate_gates(rules: list[GateRule], subject: GateSubject) -> GateOutcome:
    blocking = [rule for rule in rules if rule.blocks(subject)]
    if not blocking:
        return GateOutcome(READY)
    reason = blocking[0].reason
    missing = [r.provider for r in blocking if r.reason == reason and r.provider is not None]
    return GateOutcome(reason, missing)
