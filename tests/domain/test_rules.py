"""Tests for the pure client validation rules."""

from __future__ import annotations

from datetime import date

import pytest

from fwdctl.domain.rules import (
    IssueCollector,
    age_on,
    check_business_info,
    check_commercial_info,
    check_contacts,
    check_email,
    check_individual_info,
    check_phone_and_address,
    check_status,
    check_vat_number,
    parse_birth_date,
    validate_contact_person,
)

TODAY = date(2026, 6, 15)


def _codes(issues: list) -> list[str]:
    return [issue.code for issue in issues]


class TestAge:
    def test_birthday_already_passed(self) -> None:
        assert age_on(date(2000, 1, 1), TODAY) == 26

    def test_birthday_not_yet_reached(self) -> None:
        assert age_on(date(2000, 12, 31), TODAY) == 25

    def test_birthday_today(self) -> None:
        assert age_on(date(2010, 6, 15), TODAY) == 16

    def test_future_date_is_negative(self) -> None:
        assert age_on(date(2027, 6, 15), TODAY) == -1

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1990-04-02", date(1990, 4, 2)),
            ("1990-04-02T00:00:00", date(1990, 4, 2)),
            ("  1990-04-02 ", date(1990, 4, 2)),
            ("02/04/1990", None),
            ("", None),
            (None, None),
            (19900402, None),
        ],
    )
    def test_parse_birth_date(self, raw: object, expected: date | None) -> None:
        assert parse_birth_date(raw) == expected


class TestIndividualInfo:
    def _run(self, info: dict, **kwargs: object) -> IssueCollector:
        out = IssueCollector()
        check_individual_info(info, out, today=TODAY, **kwargs)
        return out

    def test_valid_names(self) -> None:
        out = self._run({"first_name": "Jean", "last_name": "Dupont"})
        assert out.result().is_valid
        assert out.warnings == []

    def test_missing_names(self) -> None:
        out = self._run({"first_name": "  "})
        assert [e.field for e in out.errors] == [
            "individual_info.first_name",
            "individual_info.last_name",
        ]
        assert set(_codes(out.errors)) == {"REQUIRED_FIELD"}

    def test_name_length_boundary(self) -> None:
        ok = self._run({"first_name": "a" * 50, "last_name": "b"})
        assert ok.errors == []
        too_long = self._run({"first_name": "a" * 51, "last_name": "b"})
        assert _codes(too_long.errors) == ["MAX_LENGTH"]

    def test_partial_skips_absent_names(self) -> None:
        out = self._run({"profession": "Pilot"}, partial=True)
        assert out.errors == []

    def test_partial_checks_present_names(self) -> None:
        out = self._run({"last_name": ""}, partial=True)
        assert _codes(out.errors) == ["REQUIRED_FIELD"]

    def test_age_exactly_sixteen_has_no_warning(self) -> None:
        out = self._run({"first_name": "A", "last_name": "B", "date_of_birth": "2010-06-15"})
        assert out.warnings == []

    def test_age_fifteen_warns(self) -> None:
        out = self._run({"first_name": "A", "last_name": "B", "date_of_birth": "2010-06-16"})
        assert _codes(out.warnings) == ["AGE_WARNING"]
        assert out.errors == []

    def test_age_one_hundred_twenty_is_allowed(self) -> None:
        out = self._run({"first_name": "A", "last_name": "B", "date_of_birth": "1906-06-15"})
        assert out.errors == []

    def test_age_over_one_hundred_twenty_is_an_error(self) -> None:
        out = self._run({"first_name": "A", "last_name": "B", "date_of_birth": "1905-06-15"})
        assert _codes(out.errors) == ["INVALID_DATE"]

    def test_future_birth_date_warns(self) -> None:
        out = self._run({"first_name": "A", "last_name": "B", "date_of_birth": "2030-01-01"})
        assert _codes(out.warnings) == ["AGE_WARNING"]

    def test_unparsable_birth_date(self) -> None:
        out = self._run({"first_name": "A", "last_name": "B", "date_of_birth": "yesterday"})
        assert _codes(out.errors) == ["INVALID_FORMAT"]


class TestContacts:
    def test_empty_list_reports_single_error(self) -> None:
        out = IssueCollector()
        check_contacts([], out)
        assert _codes(out.errors) == ["REQUIRED_FIELD"]
        assert out.warnings == []

    def test_no_primary(self) -> None:
        out = IssueCollector()
        check_contacts([{"first_name": "A", "last_name": "B"}], out)
        assert _codes(out.errors) == ["PRIMARY_CONTACT_REQUIRED"]

    def test_multiple_primaries_is_a_warning(self) -> None:
        out = IssueCollector()
        contacts = [
            {"first_name": "A", "last_name": "B", "is_primary": True},
            {"first_name": "C", "last_name": "D", "is_primary": True},
        ]
        check_contacts(contacts, out)
        assert out.errors == []
        assert _codes(out.warnings) == ["MULTIPLE_PRIMARY_CONTACTS"]

    def test_inactive_primary_does_not_count(self) -> None:
        out = IssueCollector()
        contacts = [
            {"first_name": "Ana", "last_name": "Diaz", "is_primary": True, "is_active": False},
            {"first_name": "Luc", "last_name": "Roy"},
        ]
        check_contacts(contacts, out)
        assert _codes(out.errors) == ["PRIMARY_CONTACT_REQUIRED"]

    def test_no_active_contact_reports_single_error(self) -> None:
        out = IssueCollector()
        contacts = [
            {"first_name": "Ana", "last_name": "Diaz", "is_primary": True, "is_active": False},
        ]
        check_contacts(contacts, out)
        assert [(e.field, e.code) for e in out.errors] == [
            ("business_info.contacts", "REQUIRED_FIELD")
        ]

    def test_contact_names_are_indexed(self) -> None:
        out = IssueCollector()
        contacts = [
            {"first_name": "A", "last_name": "B", "is_primary": True},
            {"first_name": "", "last_name": "D"},
        ]
        check_contacts(contacts, out)
        assert [e.field for e in out.errors] == ["business_info.contacts[1].first_name"]

    def test_non_object_contact(self) -> None:
        out = IssueCollector()
        check_contacts([{"first_name": "A", "last_name": "B", "is_primary": True}, "x"], out)
        assert [(e.field, e.code) for e in out.errors] == [
            ("business_info.contacts[1]", "INVALID_VALUE")
        ]


class TestBusinessInfo:
    def test_complete_business(self) -> None:
        out = IssueCollector()
        check_business_info(
            {
                "company_name": "Acme",
                "industry": "logistics",
                "contacts": [{"first_name": "A", "last_name": "B", "is_primary": True}],
            },
            out,
        )
        assert out.errors == []

    def test_missing_everything(self) -> None:
        out = IssueCollector()
        check_business_info({}, out)
        assert [e.field for e in out.errors] == [
            "business_info.company_name",
            "business_info.industry",
            "business_info.contacts",
        ]

    def test_unknown_industry(self) -> None:
        out = IssueCollector()
        check_business_info({"industry": "piracy"}, out, partial=True)
        assert _codes(out.errors) == ["INVALID_VALUE"]

    def test_company_name_length(self) -> None:
        out = IssueCollector()
        check_business_info({"company_name": "x" * 101}, out, partial=True)
        assert _codes(out.errors) == ["MAX_LENGTH"]

    def test_partial_without_contacts_key(self) -> None:
        out = IssueCollector()
        check_business_info({"company_name": "Acme"}, out, partial=True)
        assert out.errors == []

    def test_vat_number_warning(self) -> None:
        out = IssueCollector()
        check_vat_number("fr-123", out)
        assert _codes(out.warnings) == ["VAT_FORMAT_WARNING"]
        out = IssueCollector()
        check_vat_number("FR12345678901", out)
        assert out.warnings == []


class TestContactInfo:
    def test_email_required(self) -> None:
        out = IssueCollector()
        assert check_email({}, out) is None
        assert _codes(out.errors) == ["REQUIRED_FIELD"]

    def test_email_optional_when_absent_on_update(self) -> None:
        out = IssueCollector()
        assert check_email({"phone": "0102030405"}, out, required=False) is None
        assert out.errors == []

    def test_blank_email_on_update_is_required(self) -> None:
        out = IssueCollector()
        check_email({"email": " "}, out, required=False)
        assert _codes(out.errors) == ["REQUIRED_FIELD"]

    @pytest.mark.parametrize("email", ["no-at-sign", "a@b", "a b@c.de", "@c.de"])
    def test_invalid_email(self, email: str) -> None:
        out = IssueCollector()
        assert check_email({"email": email}, out) == email
        assert _codes(out.errors) == ["INVALID_FORMAT"]

    def test_format_checks_can_be_disabled(self) -> None:
        out = IssueCollector()
        check_email({"email": "nope"}, out, check_formats=False)
        check_phone_and_address({"phone": "??"}, out, check_formats=False)
        assert out.errors == []
        assert out.warnings == []

    def test_phone_warning(self) -> None:
        out = IssueCollector()
        check_phone_and_address({"phone": "call me"}, out)
        assert _codes(out.warnings) == ["PHONE_FORMAT_WARNING"]

    def test_address_needs_country(self) -> None:
        out = IssueCollector()
        check_phone_and_address({"address": {"city": "Lyon"}}, out)
        assert [(e.field, e.code) for e in out.errors] == [
            ("contact_info.address.country", "REQUIRED_FIELD")
        ]

    def test_french_postal_code_warning(self) -> None:
        out = IssueCollector()
        check_phone_and_address({"address": {"country": "FR", "postal_code": "690"}}, out)
        assert _codes(out.warnings) == ["POSTAL_CODE_FORMAT"]

    def test_foreign_postal_code_not_checked(self) -> None:
        out = IssueCollector()
        check_phone_and_address({"address": {"country": "GB", "postal_code": "SW1A 1AA"}}, out)
        assert out.warnings == []


class TestCommercialInfo:
    def test_negative_credit_limit(self) -> None:
        out = IssueCollector()
        check_commercial_info({"credit_limit": -1}, out)
        assert _codes(out.errors) == ["INVALID_VALUE"]

    def test_high_credit_limit_warns(self) -> None:
        out = IssueCollector()
        check_commercial_info({"credit_limit": 1_000_000}, out)
        assert out.warnings == []
        check_commercial_info({"credit_limit": 1_000_001}, out)
        assert _codes(out.warnings) == ["HIGH_CREDIT_LIMIT"]

    def test_payment_terms(self) -> None:
        out = IssueCollector()
        check_commercial_info({"payment_terms_days": 366}, out)
        assert _codes(out.warnings) == ["LONG_PAYMENT_TERMS"]
        check_commercial_info({"payment_terms_days": -5}, out)
        assert _codes(out.errors) == ["INVALID_VALUE"]

    def test_non_numeric_values(self) -> None:
        out = IssueCollector()
        check_commercial_info({"credit_limit": "lots", "payment_terms_days": True}, out)
        assert _codes(out.errors) == ["INVALID_VALUE", "INVALID_VALUE"]

    def test_status(self) -> None:
        out = IssueCollector()
        check_status("active", out)
        assert out.errors == []
        check_status("dormant", out)
        assert _codes(out.errors) == ["INVALID_VALUE"]


class TestContactPerson:
    def test_valid(self) -> None:
        issues = validate_contact_person(
            {"first_name": "Ana", "last_name": "Diaz", "contact_type": "billing"}
        )
        assert issues == []

    def test_missing_type_and_names(self) -> None:
        issues = validate_contact_person({})
        assert [i.field for i in issues] == ["first_name", "last_name", "contact_type"]

    def test_unknown_type(self) -> None:
        issues = validate_contact_person(
            {"first_name": "A", "last_name": "B", "contact_type": "friend"}
        )
        assert _codes(issues) == ["INVALID_VALUE"]

    def test_bad_channels(self) -> None:
        issues = validate_contact_person(
            {
                "first_name": "A",
                "last_name": "B",
                "contact_type": "other",
                "contact_info": {"email": "nope", "phone": "x"},
            }
        )
        assert [i.field for i in issues] == ["contact_info.email", "contact_info.phone"]

    def test_title_length(self) -> None:
        issues = validate_contact_person(
            {"first_name": "A", "last_name": "B", "contact_type": "other", "title": "t" * 101}
        )
        assert _codes(issues) == ["MAX_LENGTH"]
