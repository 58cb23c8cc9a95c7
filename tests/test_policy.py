import pytest

from app.errors import AuthorizationError
from app.models.auth import AppUser
from app.models.expense import Expense
from app.models.project import Project
from app.services import policy
from app.services.policy import Action

M1 = AppUser(email="m1@x.com", name="M1", role="manager")
M2 = AppUser(email="m2@x.com", name="M2", role="manager")
C1 = AppUser(email="c1@x.com", name="C1", role="consultant")


def _project(pid, manager="m1@x.com", consultants=(), status="active"):
    return Project(id=pid, name=pid, manager_id=manager, consultant_ids=list(consultants), status=status)


def _expense(eid, consultant, project_id):
    return Expense(id=eid, consultant_email=consultant, project_id=project_id, amount="10",
                   description="d", date="2024-01-01", submitted_at="2024-01-01T00:00:00Z")


@pytest.mark.parametrize("action", [
    Action.CREATE_PROJECT, Action.ASSIGN_CONSULTANT, Action.DELETE_PROJECT,
    Action.SET_PROJECT_STATUS, Action.REVIEW_EXPENSE, Action.MANAGE_CONSULTANTS,
    Action.UPLOAD_LOGO,
])
def test_consultant_is_denied_manager_actions(action):
    assert not policy.is_allowed("consultant", action, requester="c1@x.com", owner="c1@x.com")


@pytest.mark.parametrize("action", [
    Action.ASSIGN_CONSULTANT, Action.DELETE_PROJECT, Action.SET_PROJECT_STATUS,
    Action.REVIEW_EXPENSE, Action.SUBMIT_EXPENSE_ON_BEHALF,
])
def test_owner_actions_require_the_owning_manager(action):
    assert policy.is_allowed("manager", action, requester="m1@x.com", owner="m1@x.com")
    assert not policy.is_allowed("manager", action, requester="m2@x.com", owner="m1@x.com")
    assert not policy.is_allowed("manager", action, requester="m1@x.com", owner=None)


def test_unscoped_manager_actions():
    for action in (Action.CREATE_PROJECT, Action.MANAGE_CONSULTANTS, Action.UPLOAD_LOGO):
        assert policy.is_allowed("manager", action, requester="m2@x.com")


def test_expense_submission_roles():
    assert policy.is_allowed("consultant", Action.SUBMIT_EXPENSE)
    assert policy.is_allowed("manager", Action.SUBMIT_EXPENSE)
    assert not policy.is_allowed(None, Action.SUBMIT_EXPENSE)
    assert policy.is_allowed("consultant", Action.SUBMIT_MILEAGE)
    assert not policy.is_allowed("manager", Action.SUBMIT_MILEAGE)


def test_authorize_raises_uniform_forbidden():
    with pytest.raises(AuthorizationError) as exc:
        policy.authorize(M2, Action.DELETE_PROJECT, owner="m1@x.com")
    assert exc.value.status_code == 403


def test_managers_see_every_project():
    projects = [_project("p1"), _project("p2", manager="m2@x.com", status="archived")]
    assert [p.id for p in policy.visible_projects(M1, projects)] == ["p1", "p2"]
    assert [p.id for p in policy.visible_projects(M2, projects)] == ["p1", "p2"]


def test_consultants_see_only_active_assigned_projects():
    projects = [
        _project("assigned", consultants=["c1@x.com"]),
        _project("archived", consultants=["c1@x.com"], status="archived"),
        _project("other", consultants=["c2@x.com"]),
    ]
    assert [p.id for p in policy.visible_projects(C1, projects)] == ["assigned"]


def test_submission_visibility():
    projects = [_project("p1"), _project("p2", manager="m2@x.com")]
    managed = policy.managed_project_ids(M1, projects)
    assert managed == {"p1"}

    mine = _expense("e1", "c1@x.com", "p2")
    other = _expense("e2", "c2@x.com", "p1")
    assert policy.can_view_submission(C1, mine, set())
    assert not policy.can_view_submission(C1, other, set())
    assert policy.can_view_submission(M1, other, managed)
    assert not policy.can_view_submission(M1, mine, managed)
