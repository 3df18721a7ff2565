"""
Value object validation and normalization.
"""

from datetime import date

import pytest

from evolua.core.utils.datetime_utils import add_years, get_age_from_birthdate
from evolua.domain.errors import InvalidCPFError, ValidationFailedError
from evolua.domain.value_objects import (
    CPF,
    RG,
    Address,
    ContactInformation,
    Email,
    FullName,
    Gender,
    InsuranceInformation,
    PatientId,
    PatientStatus,
    PersonalInformation,
    PhoneNumber,
    UserId,
)
from evolua.domain.value_objects.patient_status import can_transition, requires_reason

from .conftest import contact_info, personal_info


@pytest.mark.parametrize("raw", ["11144477735", "111.444.777-35", "123.456.789-09", " 52998224725 "])
def test_valid_cpfs(raw):
    cpf = CPF(raw)
    assert len(cpf.get_clean_value()) == 11
    assert cpf.value.count(".") == 2 and cpf.value[-3] == "-"


@pytest.mark.parametrize(
    "raw, reason",
    [
        ("11111111111", "all digits equal"),
        ("00000000000", "all digits equal"),
        ("12345678901", "check digits"),
        ("1234567890", "11 digits"),
        ("", "11 digits"),
    ],
)
def test_invalid_cpfs(raw, reason):
    with pytest.raises(InvalidCPFError) as exc_info:
        CPF(raw)
    assert reason in exc_info.value.reason
    assert exc_info.value.error_code == "INVALID_CPF"


def test_cpf_equality_ignores_formatting():
    assert CPF("111.444.777-35") == CPF("11144477735")
    assert hash(CPF("111.444.777-35")) == hash(CPF("11144477735"))
    assert CPF.is_valid("123.456.789-09")
    assert not CPF.is_valid("123.456.789-00")


def test_invalid_cpf_is_a_value_error():
    with pytest.raises(ValueError):
        CPF("12345678901")


# Same digits in Arabic-Indic and fullwidth forms.
ARABIC_INDIC_CPF = "١١١٤٤٤٧٧٧٣٥"
FULLWIDTH_CPF = "１１１.４４４.７７７-３５"


@pytest.mark.parametrize("raw", [ARABIC_INDIC_CPF, FULLWIDTH_CPF])
def test_cpf_accepts_only_ascii_digits(raw):
    with pytest.raises(InvalidCPFError):
        CPF(raw)
    assert not CPF.is_valid(raw)


def test_other_digit_fields_accept_only_ascii_digits():
    with pytest.raises(ValueError):
        PhoneNumber("(１１) ９１２３４-５６７８")
    with pytest.raises(ValueError):
        Address("Rua A", "10", "Centro", "Recife", "PE", "５００００-０００")
    with pytest.raises(ValueError):
        RG("١٢٣٤٥٦٧٨")


def test_identifiers_are_typed():
    assert PatientId("abc") == PatientId(" abc ")
    assert PatientId("abc") != UserId("abc")
    with pytest.raises(ValueError):
        PatientId("   ")
    assert PatientId.generate() != PatientId.generate()


def test_full_name_normalization():
    name = FullName("  maria DA silva  santos ")
    assert name.value == "Maria da Silva Santos"
    assert name.first_name == "Maria"
    assert name.last_name == "Santos"
    assert name.initials == "MSS"


def test_full_name_requires_two_words():
    with pytest.raises(ValueError):
        FullName("Ana")


def test_email_is_lowercased():
    assert Email(" Ana.Souza@Example.COM ").value == "ana.souza@example.com"
    with pytest.raises(ValueError):
        Email("not-an-email")


@pytest.mark.parametrize(
    "raw, formatted, mobile",
    [
        ("11912345678", "(11) 91234-5678", True),
        ("(21) 3456-7890", "(21) 3456-7890", False),
    ],
)
def test_phone_formatting(raw, formatted, mobile):
    phone = PhoneNumber(raw)
    assert phone.value == formatted
    assert phone.is_mobile() is mobile


@pytest.mark.parametrize("raw", ["123", "(10) 91234-5678", "(11) 81234-5678"])
def test_invalid_phones(raw):
    with pytest.raises(ValueError):
        PhoneNumber(raw)


def test_address_normalizes_state_and_zip():
    address = Address("Rua A", "10", "Centro", "Recife", "pe", "50000-000")
    assert address.state == "PE"
    assert address.zip_code == "50000000"
    assert address.formatted_zip_code == "50000-000"
    with pytest.raises(ValueError):
        Address("Rua A", "10", "Centro", "Recife", "XX", "50000-000")


def test_gender_and_rg():
    assert Gender("Female").display_name == "Feminino"
    with pytest.raises(ValueError):
        Gender("unknown")
    assert RG("12.345.678-9").get_clean_value() == "123456789"
    with pytest.raises(ValueError):
        RG("1111111")


def test_personal_information_collects_field_errors():
    with pytest.raises(ValidationFailedError) as exc_info:
        PersonalInformation.from_dict(personal_info(full_name="Ana", cpf="12345678901", gender="x"))
    errors = exc_info.value.field_errors
    assert set(errors) == {"full_name", "cpf", "gender"}


def test_personal_information_rejects_future_birth():
    with pytest.raises(ValidationFailedError) as exc_info:
        PersonalInformation.from_dict(personal_info(date_of_birth="2999-01-01"))
    assert "date_of_birth" in exc_info.value.field_errors


def test_age_and_minor():
    info = PersonalInformation.from_dict(personal_info())
    assert info.get_age(date(2025, 3, 2)) == 10
    assert info.get_age(date(2025, 2, 28)) == 9
    assert info.is_minor(date(2025, 3, 2))


def test_age_helpers_handle_leap_day():
    assert get_age_from_birthdate("2000-02-29", date(2021, 2, 28)) == 20
    assert add_years(date(2000, 2, 29), 1) == date(2001, 2, 28)


def test_contact_information_rejects_same_secondary_phone():
    with pytest.raises(ValidationFailedError) as exc_info:
        ContactInformation.from_dict(contact_info(secondary_phone="11912345678"))
    assert "secondary_phone" in exc_info.value.field_errors


def test_contact_information_reports_address_fields():
    with pytest.raises(ValidationFailedError) as exc_info:
        ContactInformation.from_dict(contact_info(address={"street": "Rua A"}))
    assert "address.city" in exc_info.value.field_errors


def test_insurance_requires_provider_with_details():
    with pytest.raises(ValidationFailedError) as exc_info:
        InsuranceInformation.from_dict({"policy_number": "123"})
    assert "provider" in exc_info.value.field_errors


def test_insurance_rejects_expired_input_but_loads_expired_records():
    with pytest.raises(ValidationFailedError):
        InsuranceInformation.from_dict(
            {"provider": "Unimed", "valid_until": "2020-01-01"}, reference=date(2025, 1, 1)
        )
    stored = InsuranceInformation(provider="Unimed", valid_until=date(2020, 1, 1))
    assert stored.is_expired(date(2025, 1, 1))
    assert stored.days_until_expiration(date(2019, 12, 31)) == 1


def test_patient_status_normalization():
    assert PatientStatus("On-Hold").value == "on_hold"
    assert PatientStatus.default().value == "active"
    assert PatientStatus("active") == "active"
    with pytest.raises(ValueError):
        PatientStatus("archived")


def test_status_transition_table():
    active = PatientStatus("active")
    assert can_transition(None, PatientStatus("new"))
    assert not can_transition(None, PatientStatus("discharged"))
    assert can_transition(active, PatientStatus("discharged"))
    assert requires_reason(active, PatientStatus("discharged"))
    assert not can_transition(PatientStatus("new"), PatientStatus("discharged"))
    assert not requires_reason(PatientStatus("new"), active)
