"""Tests for sync metrics."""

from prometheus_client import REGISTRY

from sitesearch.observability.metrics import get_metrics, source_kind


def _sample(name, **labels):
    return REGISTRY.get_sample_value(name, labels) or 0.0


def test_source_kind_collapses_site_endpoints():
    assert source_kind("site:https://a.example/export") == "site"
    assert source_kind("quicklink") == "quicklink"
    assert source_kind("user") == "user"


def test_get_metrics_is_singleton():
    assert get_metrics() is get_metrics()


def test_record_writes_by_action():
    metrics = get_metrics()
    before = _sample("sitesearch_documents_written_total", source_kind="site", action="added")

    metrics.record_writes("site:https://a.example", added=3, updated=0)

    after = _sample("sitesearch_documents_written_total", source_kind="site", action="added")
    assert after - before == 3


def test_record_access_decision():
    metrics = get_metrics()
    before = _sample("sitesearch_access_decisions_total", source_kind="user", decision="denied")

    metrics.record_access_decision("user", granted=False)

    after = _sample("sitesearch_access_decisions_total", source_kind="user", decision="denied")
    assert after - before == 1
