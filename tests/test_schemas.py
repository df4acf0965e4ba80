import pydantic
import pytest

from aegis.errors import RuleViolations
from aegis.schemas.task import TaskCreate, TaskUpdate
from aegis.schemas.user import LoginRequest, ProfileUpdate, SignupRequest

GOOD_SIGNUP = {
    "email": "jane.doe@example.com",
    "username": "  jane-doe_1 ",
    "password": "Str0ng!pass",
    "confirmPassword": "Str0ng!pass",
}


def _errors(model, payload):
    with pytest.raises(pydantic.ValidationError) as excinfo:
        model.model_validate(payload)
    return excinfo.value.errors()


def _fields(errors):
    return {e["loc"][0] for e in errors}


def test_signup_trims_username():
    body = SignupRequest.model_validate(GOOD_SIGNUP)
    assert body.username == "jane-doe_1"
    assert body.password == "Str0ng!pass"


def test_empty_signup_reports_every_field():
    assert _fields(_errors(SignupRequest, {})) == {"email", "username", "password", "confirmPassword"}


def test_password_rules_are_collected_in_one_error():
    errors = _errors(SignupRequest, dict(GOOD_SIGNUP, password="abc", confirmPassword="abc"))
    assert len(errors) == 1
    cause = errors[0]["ctx"]["error"]
    assert isinstance(cause, RuleViolations)
    assert cause.messages == [
        "Password must be at least 8 characters long",
        "Password must contain at least one uppercase letter",
        "Password must contain at least one number",
        'Password must contain at least one special character (!@#$%^&*(),.?":{}|<>)',
    ]


def test_confirm_password_must_match():
    errors = _errors(SignupRequest, dict(GOOD_SIGNUP, confirmPassword="Str0ng!pasS"))
    assert [(e["loc"], str(e["ctx"]["error"])) for e in errors] == [(("confirmPassword",), "Passwords do not match")]


@pytest.mark.parametrize("username,ok", [
    ("abc", True), ("a" * 30, True), ("ab", False), ("a" * 31, False), ("no spaces", False), ("dots.not.ok", False),
])
def test_username_rules(username, ok):
    payload = dict(GOOD_SIGNUP, username=username)
    if ok:
        assert SignupRequest.model_validate(payload).username == username
    else:
        assert _fields(_errors(SignupRequest, payload)) == {"username"}


def test_login_fields_must_not_be_blank():
    assert _fields(_errors(LoginRequest, {"emailOrUsername": "   ", "password": ""})) == {"emailOrUsername", "password"}
    body = LoginRequest.model_validate({"emailOrUsername": " jane ", "password": " x "})
    assert (body.email_or_username, body.password) == ("jane", " x ")


def test_profile_update_fields_are_optional():
    assert ProfileUpdate.model_validate({}).model_dump(exclude_none=True) == {}
    errors = _errors(ProfileUpdate, {"password": "short", "email": "nope"})
    assert _fields(errors) == {"password", "email"}
    # strength rules only apply at signup
    assert ProfileUpdate.model_validate({"password": "longenough"}).password == "longenough"


def test_task_create_defaults_and_trimming():
    body = TaskCreate.model_validate({"title": "  Plan  ", "description": None})
    assert (body.title, body.description, body.status) == ("Plan", "", None)


def test_task_create_rejects_bad_fields_together():
    errors = _errors(TaskCreate, {"title": " ", "description": "x" * 2001, "status": "blocked"})
    assert _fields(errors) == {"title", "description", "status"}


def test_task_update_changes_only_what_was_sent():
    assert TaskUpdate.model_validate({"status": "completed"}).changes() == {"status": "completed"}
    assert TaskUpdate.model_validate({"title": None, "description": None}).changes() == {"description": ""}
    assert _fields(_errors(TaskUpdate, {"title": "t" * 201})) == {"title"}
