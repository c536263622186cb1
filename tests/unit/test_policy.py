"""Tests for the ordered identity-gate chain."""

from spotiqueue.fingerprints.policy import (
    NEEDS_USERNAME,
    NEEDS_VERIFICATION,
    READY,
    GateSubject,
    build_gate_chain,
    evaluate_gates,
)
from spotiqueue.fingerprints.providers import get_identity_providers
from tests.helpers import make_config, make_settings


def _evaluate(config, username=None, verified=(), **settings):
    providers = get_identity_providers(make_settings(**settings), config)
    rules = build_gate_chain(providers, config)
    return evaluate_gates(rules, GateSubject(username, frozenset(verified)))


class TestGateChain:
    def test_no_requirements(self):
        assert _evaluate(make_config()).state == READY

    def test_username_rule(self):
        config = make_config(require_username=True)
        assert _evaluate(config).state == NEEDS_USERNAME
        assert _evaluate(config, username="eve").state == READY

    def test_verification_takes_precedence(self):
        config = make_config(require_username=True, require_github_auth=True)
        outcome = _evaluate(config)
        assert outcome.state == NEEDS_VERIFICATION
        assert [p.name for p in outcome.missing_providers] == ["github"]

    def test_all_missing_providers_reported(self):
        config = make_config(require_github_auth=True, require_hackclub_auth=True)
        outcome = _evaluate(config, verified={"github"})
        assert [p.name for p in outcome.missing_providers] == ["hackclub"]
        outcome = _evaluate(config)
        assert outcome.needs("github") and outcome.needs("hackclub")

    def test_verified_identity_substitutes_for_username(self):
        config = make_config(require_username=True, require_github_auth=True)
        assert _evaluate(config, verified={"github"}).state == READY

    def test_unconfigured_providers(self):
        config = make_config(require_github_auth=True, require_hackclub_auth=True)
        outcome = _evaluate(config, github_client_id="id", github_client_secret="s")
        assert [p.name for p in outcome.unconfigured_providers] == ["hackclub"]
