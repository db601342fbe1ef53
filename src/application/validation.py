from __future__ import annotations

import re
from decimal import Decimal

from domain.errors import FormValidationError
from domain.schemas import ChangePasswordRequest, ClientForm, RegisterRequest, TransactionForm

MIN_PASSWORD_LENGTH = 6

_EMAIL_RE = re.compile(r"\S+@\S+\.\S+")
_CPF_RE = re.compile(r"^\d{3}\.\d{3}\.\d{3}-\d{2}$")
_PHONE_RE = re.compile(r"^\(\d{2}\) \d{5}-\d{4}$")


def _raise_if_any(errors: dict[str, str]) -> None:
    if errors:
        raise FormValidationError(errors)


def validate_client_form(form: ClientForm) -> None:
    errors: dict[str, str] = {}
    if not form.name.strip():
        errors["name"] = "Nome é obrigatório"

    if not form.email.strip():
        errors["email"] = "Email é obrigatório"
    elif not _EMAIL_RE.search(form.email):
        errors["email"] = "Email inválido"

    if not form.cpf.strip():
        errors["cpf"] = "CPF é obrigatório"
    elif not _CPF_RE.match(form.cpf):
        errors["cpf"] = "CPF deve estar no formato 000.000.000-00"

    if form.phone and not _PHONE_RE.match(form.phone):
        errors["phone"] = "Telefone deve estar no formato (00) 00000-0000"
    _raise_if_any(errors)


def validate_registration(form: RegisterRequest) -> None:
    errors: dict[str, str] = {}
    if form.password != form.confirm_password:
        errors["confirmPassword"] = "As senhas não coincidem"
    elif len(form.password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"A senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres"
    _raise_if_any(errors)


def validate_password_change(form: ChangePasswordRequest) -> None:
    if not form.current_password or not form.new_password or not form.confirm_password:
        raise FormValidationError({"form": "Todos os campos são obrigatórios"})
    errors: dict[str, str] = {}
    if len(form.new_password) < MIN_PASSWORD_LENGTH:
        errors["newPassword"] = f"A nova senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres"
    elif form.new_password != form.confirm_password:
        errors["confirmPassword"] = "As senhas não coincidem"
    _raise_if_any(errors)


def validate_transaction(form: TransactionForm) -> None:
    errors: dict[str, str] = {}
    if not form.description.strip():
        errors["description"] = "Descrição é obrigatória"
    if form.amount <= Decimal("0"):
        errors["amount"] = "O valor deve ser maior que zero"
    if not form.category_id:
        errors["categoryId"] = "Categoria é obrigatória"
    _raise_if_any(errors)


def validate_category(name: str) -> None:
    if not name.strip():
        raise FormValidationError({"name": "Nome é obrigatório"})


def format_cpf(value: str) -> str:
    """Progressive 000.000.000-00 mask over the digits typed so far."""
    digits = re.sub(r"\D", "", value)[:11]
    out = digits[:3]
    if len(digits) > 3:
        out += "." + digits[3:6]
    if len(digits) > 6:
        out += "." + digits[6:9]
    if len(digits) > 9:
        out += "-" + digits[9:11]
    return out


def format_phone(value: str) -> str:
    """Progressive (00) 00000-0000 mask."""
    digits = re.sub(r"\D", "", value)[:11]
    if not digits:
        return ""
    out = "(" + digits[:2]
    if len(digits) > 2:
        out += ") " + digits[2:7]
    if len(digits) > 7:
        out += "-" + digits[7:11]
    return out
