"""
Tests for access policy evaluation.
"""

import pytest

from catalog_backend.permissions.core import AccessPolicy
from catalog_backend.permissions.facts import AccessPolicyFacts
from catalog_backend.tests.fixtures import make_user

AREAS = ["Mathematics", "English", "Science", "Filipino"]
GRADES = list(range(1, 13))


@pytest.mark.unit
class TestFullAdministrator:

    def test_role_or_flag(self, policy):
        assert policy.is_full_administrator(make_user("ana", role="Administrator"))
        assert policy.is_full_administrator(make_user("ana", is_admin_access=True))
        assert not policy.is_full_administrator(make_user("ana"))

    def test_denylist_wins_over_role_and_flag(self, policy):
        assert not policy.is_full_administrator(make_user("jc", role="Administrator", is_admin_access=True))
        assert not policy.is_full_administrator(make_user("NoNie", role="Administrator"))

    def test_absent_user(self, policy):
        assert not policy.is_full_administrator(None)


@pytest.mark.unit
class TestMayAccess:

    def test_absent_user_is_system(self, policy):
        assert policy.may_access(None, "Science", 7)

    def test_zero_rules_denies_everything(self, policy):
        user = make_user("newbie")
        for area in AREAS:
            for grade in GRADES:
                assert not policy.may_access(user, area, grade)

    def test_wildcard_ignores_area(self, policy):
        user = make_user("admin", role="Administrator", rules=[(["*"], [])])
        assert policy.may_access(user, "Mathematics", 5)
        assert policy.may_access(user, "Araling Panlipunan", 12)

    def test_wildcard_keeps_grade_dimension(self, policy):
        user = make_user("ana", rules=[(["*"], [4, 5])])
        assert policy.may_access(user, "Mathematics", 5)
        assert not policy.may_access(user, "Mathematics", 6)

    def test_literal_area(self, policy):
        user = make_user("ana", rules=[(["English"], [])])
        assert policy.may_access(user, "English", 9)
        assert not policy.may_access(user, "Mathematics", 9)

    def test_any_rule_may_match(self, policy):
        user = make_user("ana", rules=[(["English"], [1]), (["Mathematics"], [2])])
        assert policy.may_access(user, "Mathematics", 2)
        assert not policy.may_access(user, "Mathematics", 1)

    def test_restricted_area_allow_list(self, policy):
        leo = make_user("leo", rules=[(["*"], [])])
        pat = make_user("pat", rules=[(["*"], [])])

        assert policy.may_access(leo, "Science", 1)
        for grade in GRADES:
            assert not policy.may_access(pat, "Science", grade)

    def test_explicit_restricted_rule_needs_allow_list(self, policy):
        pat = make_user("pat", rules=[(["Science"], [])])
        assert not policy.may_access(pat, "Science", 3)

    def test_username_case_is_ignored(self, policy):
        leo = make_user("Leo", rules=[(["Science"], [])])
        assert policy.may_access(leo, "Science", 3)

    def test_grade_override(self, policy):
        jc = make_user("jc", rules=[(["*"], [1, 2, 3, 4, 5, 6])])
        assert not policy.may_access(jc, "Mathematics", 2)
        assert policy.may_access(jc, "Mathematics", 3)

    def test_grade_override_wins_over_all_grades_rule(self, policy):
        nonie = make_user("nonie", rules=[(["*"], [])])
        for grade in GRADES:
            assert policy.may_access(nonie, "English", grade) == (grade in [1, 3])

    def test_injected_facts(self):
        policy = AccessPolicy(AccessPolicyFacts(grade_limited={"ana": [7]}, restricted_area="Filipino"))
        ana = make_user("ana", rules=[(["*"], [])])

        assert policy.may_access(ana, "Science", 7)
        assert not policy.may_access(ana, "Science", 8)
        assert not policy.may_access(ana, "Filipino", 7)


@pytest.mark.unit
class TestMutationChecks:

    def test_creator_may_modify_outside_rules(self, policy):
        user = make_user("newbie")
        assert policy.may_modify(user, "NEWBIE", "Science", 9)
        assert not policy.may_modify(user, "someone", "Science", 9)

    def test_admin_may_modify(self, policy):
        admin = make_user("boss", role="Administrator")
        assert policy.may_modify(admin, "someone", "Science", 9)

    def test_relocation_checks_new_placement(self, policy):
        pat = make_user("pat", rules=[(["English"], [1, 2])])
        assert policy.may_relocate(pat, "someone", "English", 2)
        assert not policy.may_relocate(pat, "someone", "English", 3)

    def test_creator_may_relocate_anywhere(self, policy):
        pat = make_user("pat", rules=[(["English"], [1, 2])])
        assert policy.may_relocate(pat, "pat", "Science", 11)

    def test_unrestricted_view(self, policy):
        assert policy.may_view_unrestricted(None)
        assert policy.may_view_unrestricted(make_user("boss", role="Administrator"))
        assert not policy.may_view_unrestricted(make_user("jc", role="Administrator"))
        assert policy.may_view_unrestricted(make_user("jc", role="Administrator"), admin_view=True)
        assert not policy.may_view_unrestricted(make_user("pat"), admin_view=True)
