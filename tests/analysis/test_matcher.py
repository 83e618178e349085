from __future__ import annotations

from drift_service.analysis import filter_by_labels, match_baselines, match_labels
from drift_service.models import DatabaseInstance, SQLBaseline


def _instance(name: str, **labels: str) -> DatabaseInstance:
    return DatabaseInstance(project="payments-prod", name=name, labels=dict(labels))


def test_empty_filter_matches_everything() -> None:
    assert match_labels({"app": "vault"}, {})
    assert match_labels({}, None)
    assert match_labels(None, {})


def test_filter_requires_every_key_with_equal_value() -> None:
    labels = {"app": "vault", "env": "prod"}

    assert match_labels(labels, {"app": "vault"})
    assert match_labels(labels, {"app": "vault", "env": "prod"})
    assert not match_labels(labels, {"app": "vault", "env": "dev"})
    assert not match_labels(labels, {"team": "core"})
    assert not match_labels(None, {"app": "vault"})


def test_filter_by_labels_keeps_order() -> None:
    resources = [_instance("a", role="primary"), _instance("b", role="replica"), _instance("c", role="primary")]

    assert [item.name for item in filter_by_labels(resources, {"role": "primary"})] == ["a", "c"]
    assert filter_by_labels(resources, {}) == resources


def test_first_matching_baseline_claims_resource() -> None:
    vault = _instance("vault-db", app="vault")
    other = _instance("orders-db", app="orders")
    baselines = [
        SQLBaseline(name="vault", filter_labels={"app": "vault"}),
        SQLBaseline(name="catch-all"),
    ]

    result = match_baselines(baselines, [vault, other])

    assert [(resource.name, baseline.name) for resource, baseline in result.pairs] == [
        ("vault-db", "vault"),
        ("orders-db", "catch-all"),
    ]
    assert result.unmatched == []


def test_resources_without_matching_baseline_are_unmatched() -> None:
    dev = _instance("scratch", env="dev")
    result = match_baselines([SQLBaseline(name="prod", filter_labels={"env": "prod"})], [dev])

    assert result.pairs == []
    assert result.unmatched == [dev]


def test_no_baselines_leaves_everything_unmatched() -> None:
    resources = [_instance("a"), _instance("b")]

    assert match_baselines([], resources).unmatched == resources
