"""Tests for the access control evaluator."""

import pytest

from sitesearch.access.evaluator import AccessDecision, AccessEvaluator, Requester
from sitesearch.documents.schemas import Document

GRANTED = AccessDecision.GRANTED
DENIED = AccessDecision.DENIED


@pytest.fixture
def evaluator():
    return AccessEvaluator()


def _doc(source, audiences, doc_id=1):
    return Document(id=doc_id, source=source, extid=str(doc_id), audiences=audiences)


class TestRequester:
    def test_from_profile_splits_and_normalizes(self):
        requester = Requester.from_profile("Senior School:Staff, Parents ,", "07, 8")

        assert requester.roles == ["senior school:staff", "parents"]
        assert requester.years == ["7", "8"]
        assert requester.is_site_admin is False

    def test_missing_profile_fields(self):
        requester = Requester.from_profile(None, None)

        assert requester.roles == []
        assert requester.years == []


class TestQuickLinks:
    def test_wildcard_grants_parent_any_year(self, evaluator):
        doc = _doc("quicklink", "*,staff,students,parents,admin")

        assert evaluator.decide(doc, Requester(roles=["parent"], years=["11"])) == GRANTED

    def test_exact_role_match(self, evaluator):
        assert evaluator.decide(_doc("quicklink", "students"), Requester(roles=["students"])) == GRANTED

    def test_token_substring_of_role(self, evaluator):
        doc = _doc("quicklink", "staff")

        assert evaluator.decide(doc, Requester.from_profile("Senior School:Staff")) == GRANTED

    def test_no_matching_role_denied(self, evaluator):
        doc = _doc("quicklink", "staff")

        assert evaluator.decide(doc, Requester(roles=["students"])) == DENIED

    def test_site_admin_granted_role_link(self, evaluator):
        doc = _doc("quicklink", "staff")

        assert evaluator.decide(doc, Requester(is_site_admin=True)) == GRANTED

    def test_numeric_audience_checks_years(self, evaluator):
        doc = _doc("quicklink", "7,8")

        assert evaluator.decide(doc, Requester(roles=["students"], years=["8"])) == GRANTED
        assert evaluator.decide(doc, Requester(roles=["students"], years=["9"])) == DENIED

    def test_numeric_audience_ignores_roles(self, evaluator):
        doc = _doc("quicklink", "7")

        assert evaluator.decide(doc, Requester(roles=["staff"], is_site_admin=True)) == DENIED

    def test_mixed_audience_uses_roles(self, evaluator):
        doc = _doc("quicklink", "students,7")

        assert evaluator.decide(doc, Requester(roles=["students"], years=["10"])) == GRANTED

    def test_empty_audience_denied(self, evaluator):
        assert evaluator.decide(_doc("quicklink", ""), Requester(roles=["staff"])) == DENIED


class TestUserDocuments:
    def test_staff_granted(self, evaluator):
        assert evaluator.decide(_doc("user", "staff"), Requester.from_profile("Senior School:Staff")) == GRANTED

    def test_student_denied(self, evaluator):
        assert evaluator.decide(_doc("user", "staff"), Requester(roles=["student"])) == DENIED

    def test_parent_denied(self, evaluator):
        assert evaluator.decide(_doc("user", "staff"), Requester(roles=["parents"])) == DENIED

    def test_site_admin_granted(self, evaluator):
        assert evaluator.decide(_doc("user", "staff"), Requester(is_site_admin=True)) == GRANTED


class TestSiteDocuments:
    def test_family_intersection_granted(self, evaluator):
        doc = _doc("site:https://a.example", "students,parents")

        assert evaluator.decide(doc, Requester.from_profile("Year 9 Students")) == GRANTED

    def test_no_intersection_denied(self, evaluator):
        doc = _doc("site:https://a.example", "staff")

        assert evaluator.decide(doc, Requester(roles=["parent"])) == DENIED

    def test_site_admin_not_an_override(self, evaluator):
        doc = _doc("site:https://a.example", "staff")

        assert evaluator.decide(doc, Requester(roles=["visitor"], is_site_admin=True)) == DENIED

    def test_unknown_role_never_matches_invalid_audience(self, evaluator):
        doc = _doc("site:https://a.example", "invalid")

        assert evaluator.decide(doc, Requester(roles=["visitor"])) == DENIED


def test_missing_document_denied(evaluator):
    assert evaluator.decide(None, Requester(roles=["staff"], is_site_admin=True)) == DENIED
