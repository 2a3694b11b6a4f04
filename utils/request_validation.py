"""Utilities for validating incoming Flask requests."""

from __future__ import annotations

import string
from dataclasses import dataclass, field
from typing import Generic, Iterable, Mapping, TypeVar

from email_validator import EmailNotValidError, validate_email
from flask import Request
from werkzeug.exceptions import BadRequest

T = TypeVar("T")

PASSWORD_MIN_LENGTH = 8


class ValidationFailed(BadRequest):
    """400 error carrying per-field messages."""

    def __init__(self, errors: Mapping[str, list[str]]):
        super().__init__("Request validation failed.")
        self.errors = dict(errors)


@dataclass
class ValidationResult(Generic[T]):
    """Either a validated value or the errors found, keyed by field."""

    value: T | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def unwrap(self) -> T:
        """Return the value or raise :class:`ValidationFailed`."""

        if not self.is_valid:
            raise ValidationFailed(self.errors)
        return self.value  # type: ignore[return-value]


@dataclass(frozen=True)
class RegistrationData:
    firstname: str
    lastname: str
    email: str
    password: str


@dataclass(frozen=True)
class LoginData:
    email: str
    password: str


def parse_json_request(
    req: Request,
    *,
    required_keys: Iterable[str] | None = None,
    allow_empty: bool = False,
) -> dict:
    """Return the parsed JSON body or raise a 400 error."""

    if not req.is_json:
        raise BadRequest("Request content type must be application/json.")

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request JSON body is required.")

    if not isinstance(data, dict):
        raise BadRequest("Request JSON payload must be an object.")

    if not data and not allow_empty:
        raise BadRequest("Request JSON body must not be empty.")

    if required_keys:
        missing = [key for key in required_keys if not data.get(key)]
        if missing:
            raise BadRequest(
                "Missing required fields: {}.".format(
                    ", ".join(sorted(missing))
                )
            )

    return data


def _add(errors: dict[str, list[str]], name: str, message: str) -> None:
    errors.setdefault(name, []).append(message)


def _string_field(payload: Mapping, name: str, errors: dict, *, required: bool = True) -> str | None:
    if name not in payload or payload[name] is None:
        if required:
            _add(errors, name, f"{name} is required.")
        return None
    value = payload[name]
    if not isinstance(value, str):
        _add(errors, name, f"{name} must be a string.")
        return None
    return value


def _email_field(payload: Mapping, errors: dict, *, required: bool = True) -> str | None:
    raw = _string_field(payload, "email", errors, required=required)
    if raw is None:
        return None
    email = raw.strip()
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        _add(errors, "email", "email must be a valid email address.")
        return None
    return email


def _name_field(payload: Mapping, name: str, errors: dict, *, required: bool = True) -> str | None:
    value = _string_field(payload, name, errors, required=required)
    if value is None:
        return None
    value = value.strip()
    if not value:
        _add(errors, name, f"{name} must not be empty.")
        return None
    return value


def password_problems(password: str) -> list[str]:
    """Return the strength rules ``password`` breaks."""

    problems = []
    if len(password) < PASSWORD_MIN_LENGTH:
        problems.append(f"password must be at least {PASSWORD_MIN_LENGTH} characters long.")
    if not any(ch.isupper() for ch in password):
        problems.append("password must contain an uppercase letter.")
    if not any(ch.islower() for ch in password):
        problems.append("password must contain a lowercase letter.")
    if not any(ch.isdigit() for ch in password):
        problems.append("password must contain a number.")
    if not any(ch in string.punctuation or not (ch.isalnum() or ch.isspace()) for ch in password):
        problems.append("password must contain a special character.")
    return problems


def validate_registration(payload: Mapping) -> ValidationResult[RegistrationData]:
    errors: dict[str, list[str]] = {}
    firstname = _name_field(payload, "firstname", errors)
    lastname = _name_field(payload, "lastname", errors)
    email = _email_field(payload, errors)
    password = _string_field(payload, "password", errors)
    if password is not None:
        for problem in password_problems(password):
            _add(errors, "password", problem)

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(
        RegistrationData(firstname=firstname, lastname=lastname, email=email, password=password)
    )


def validate_login(payload: Mapping) -> ValidationResult[LoginData]:
    errors: dict[str, list[str]] = {}
    email = _email_field(payload, errors)
    password = _string_field(payload, "password", errors)
    if password == "":
        _add(errors, "password", "password must not be empty.")

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(LoginData(email=email, password=password))


def validate_profile_update(payload: Mapping) -> ValidationResult[dict[str, str]]:
    """Validate a sparse profile update; fields other than names and email are dropped."""

    errors: dict[str, list[str]] = {}
    changes: dict[str, str] = {}
    for name in ("firstname", "lastname"):
        if name in payload:
            value = _name_field(payload, name, errors)
            if value is not None:
                changes[name] = value
    if "email" in payload:
        email = _email_field(payload, errors)
        if email is not None:
            changes["email"] = email

    if errors:
        return ValidationResult(errors=errors)
    return ValidationResult(changes)
