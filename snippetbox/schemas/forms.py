"""
Snippetbox: Form Models and Decoding
====================================

What:  Pydantic models describing each HTML form, plus decode_post_form() which
       maps a submitted x-www-form-urlencoded body onto one of them.
How:   Pydantic performs the string → int conversion. Every form carries its
       own Validator so handlers can attach rule failures and the template can
       render them next to the redisplayed input.

Failure modes:
    DecodeError      A value could not be converted (expires=abc). → 400
    ProgrammerError  The destination is not a Form subclass. Our bug, never
                     recovered; it surfaces as a 500 and fails the route test.
"""

from typing import Dict, List, Type, TypeVar

from pydantic import BaseModel, ConfigDict, PrivateAttr
from pydantic import ValidationError as PydanticValidationError
from starlette.requests import Request

from snippetbox.exceptions import DecodeError, ProgrammerError
from snippetbox.validator import Validator


class Form(BaseModel):
    """
    Base class for request-scoped form models.

    Unknown keys (csrf_token, submit buttons) are ignored. The attached
    Validator is a private attribute so it never collides with a form field.
    """

    model_config = ConfigDict(extra="ignore")

    _validator: Validator = PrivateAttr(default_factory=Validator)

    @property
    def field_errors(self) -> Dict[str, List[str]]:
        return self._validator.field_errors

    @property
    def non_field_errors(self) -> List[str]:
        return self._validator.non_field_errors

    def valid(self) -> bool:
        return self._validator.valid()

    def check_field(self, ok: bool, key: str, message: str) -> None:
        self._validator.check_field(ok, key, message)

    def add_field_error(self, key: str, message: str) -> None:
        self._validator.add_field_error(key, message)

    def add_non_field_error(self, message: str) -> None:
        self._validator.add_non_field_error(message)


FormT = TypeVar("FormT", bound=Form)


class SnippetCreateForm(Form):
    title: str = ""
    content: str = ""
    # 0 is not a permitted value, so a missing field fails validation
    expires: int = 0


class UserSignupForm(Form):
    name: str = ""
    email: str = ""
    password: str = ""


class UserLoginForm(Form):
    email: str = ""
    password: str = ""


class AccountPasswordUpdateForm(Form):
    current_password: str = ""
    new_password: str = ""
    new_password_confirmation: str = ""


async def decode_post_form(request: Request, form_class: Type[FormT]) -> FormT:
    """
    Decode the request's form body into `form_class`.

    Empty strings are dropped before validation so a blank input falls back
    to the field's zero value instead of failing int conversion; the
    handler's validation rules then report it like any other bad value.
    """
    if not (isinstance(form_class, type) and issubclass(form_class, Form)):
        raise ProgrammerError(
            message=f"decode_post_form() needs a Form subclass, got {form_class!r}",
        )

    submitted = await request.form()
    values = {
        key: value
        for key, value in submitted.items()
        if isinstance(value, str) and value != ""
    }

    try:
        return form_class.model_validate(values)
    except PydanticValidationError as exc:
        raise DecodeError(
            context={
                "form": form_class.__name__,
                "fields": [".".join(str(part) for part in err["loc"]) for err in exc.errors()],
            },
        ) from exc
