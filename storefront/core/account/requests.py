from __future__ import annotations

from typing import Annotated, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator
from pydantic.alias_generators import to_camel

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

# Names and emails are trimmed; passwords are taken exactly as sent.
_Text = Annotated[str, StringConstraints(strip_whitespace=True)]
_RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
_Email = Annotated[str, StringConstraints(strip_whitespace=True, pattern=_EMAIL_PATTERN)]


class _StorefrontRequest(BaseModel):
    # Storefront clients send camelCase keys; snake_case is accepted too.
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class LoginRequest(_StorefrontRequest):
    username: _RequiredText
    password: str = Field(min_length=1)


class AddressSaveRequest(_StorefrontRequest):
    id: Optional[_Text] = None
    salutation: _Text = ""
    first_name: _RequiredText
    last_name: _RequiredText
    street: _RequiredText
    zipcode: _Text = ""
    city: _RequiredText
    country_id: _RequiredText
    company: Optional[_Text] = None
    department: Optional[_Text] = None
    phone_number: Optional[_Text] = None
    additional_address_line1: Optional[_Text] = None


class RegistrationRequest(_StorefrontRequest):
    salutation: _Text = ""
    title: Optional[_Text] = None
    first_name: _RequiredText
    last_name: _RequiredText
    email: _Email
    password: Optional[str] = None
    guest: bool = False
    birthday: Optional[_Text] = None
    billing_address: AddressSaveRequest
    shipping_address: Optional[AddressSaveRequest] = None

    @model_validator(mode="after")
    def _password_unless_guest(self) -> "RegistrationRequest":
        if not self.guest and not self.password:
            raise ValueError("password is required for non-guest registration")
        return self


class EmailSaveRequest(_StorefrontRequest):
    email: _Email
    email_confirmation: _Text


class PasswordSaveRequest(_StorefrontRequest):
    password: str = Field(min_length=1)
    password_confirmation: Optional[str] = None


class ProfileSaveRequest(_StorefrontRequest):
    salutation: _Text = ""
    title: Optional[_Text] = None
    first_name: _RequiredText
    last_name: _RequiredText
    birthday: Optional[_Text] = None
