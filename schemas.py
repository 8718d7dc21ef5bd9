"""
Request form schemas.

Each schema declares the message used when a field is missing via
`required_messages`; format problems are reported by the validators.
"""
from typing import ClassVar, Dict, Literal

from pydantic import BaseModel, field_validator

from utils.security_utils import validate_email


class FormSchema(BaseModel):
    required_messages: ClassVar[Dict[str, str]] = {}


class ForgotPasswordForm(FormSchema):
    required_messages: ClassVar[Dict[str, str]] = {"email": "Email is required"}

    email: str

    @field_validator("email")
    @classmethod
    def email_format(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("Email is required")
        if not validate_email(value):
            raise ValueError("Email is invalid")
        return value


class ResetPasswordForm(FormSchema):
    required_messages: ClassVar[Dict[str, str]] = {
        "token": "Reset link is missing or invalid",
        "password": "Password is required",
    }

    token: str
    password: str


class RequestCodeForm(FormSchema):
    required_messages: ClassVar[Dict[str, str]] = {"email": "Please enter email to continue"}

    intent: Literal["requestCode"] = "requestCode"
    email: str

    @field_validator("email")
    @classmethod
    def email_format(cls, value: str) -> str:
        value = value.strip().lower()
        if not value:
            raise ValueError("Please enter email to continue")
        if not validate_email(value):
            raise ValueError("Please enter a valid email")
        return value


class VerifyCodeForm(FormSchema):
    required_messages: ClassVar[Dict[str, str]] = {"code": "Please enter a verification code"}

    intent: Literal["verifyCode"] = "verifyCode"
    code: str

    @field_validator("code")
    @classmethod
    def code_present(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter a verification code")
        return value


VERIFY_EMAIL_INTENTS = {
    "requestCode": RequestCodeForm,
    "verifyCode": VerifyCodeForm,
}
