import sys
import pathlib
from datetime import date

import pytest

BASE_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

from legaldraft.exceptions import TemplateSyntaxError
from legaldraft.schemas import GenerationRequest
from legaldraft.templating.bindings import FieldBindings, build_bindings
from legaldraft.templating.parser import Conditional, Placeholder, Text, parse
from legaldraft.templating.renderer import render
from legaldraft.templating.transforms import apply_transform, format_date

DEPOSIT_TEMPLATE = "Party: {{partyName}}{{#if hasDeposit}} Deposit: {{depositAmount}}{{/if}}."


def test_deposit_block_included_when_flag_true():
    bindings = FieldBindings(
        values={"partyName": "Ahmed", "depositAmount": "5000"},
        flags={"hasDeposit": True},
    )
    result = render(DEPOSIT_TEMPLATE, bindings)
    assert result.text == "Party: Ahmed Deposit: 5000."
    assert result.warnings == []


def test_deposit_block_omitted_when_flag_false():
    bindings = FieldBindings(
        values={"partyName": "Ahmed", "depositAmount": "5000"},
        flags={"hasDeposit": False},
    )
    assert render(DEPOSIT_TEMPLATE, bindings).text == "Party: Ahmed."


def test_rendering_is_idempotent():
    bindings = FieldBindings(values={"partyName": "Ahmed"}, flags={"hasDeposit": True})
    first = render(DEPOSIT_TEMPLATE, bindings)
    second = render(DEPOSIT_TEMPLATE, bindings)
    assert first == second


def test_flag_falls_back_to_value_truthiness():
    template = "{{#if note}}[{{note}}]{{/if}}"
    assert render(template, FieldBindings(values={"note": "urgent"})).text == "[urgent]"
    assert render(template, FieldBindings(values={"note": ""})).text == ""
    assert render(template, FieldBindings()).text == ""


def test_nested_conditionals_decide_their_own_spans():
    template = "{{#if a}}X{{#if b}}Y{{/if}}{{/if}}"
    assert render(template, FieldBindings(flags={"a": True, "b": True})).text == "XY"
    assert render(template, FieldBindings(flags={"a": True, "b": False})).text == "X"
    assert render(template, FieldBindings(flags={"a": False, "b": True})).text == ""


def test_sibling_blocks_are_independent():
    template = "{{#if a}}A{{/if}}-{{#if b}}B{{/if}}"
    assert render(template, FieldBindings(flags={"a": False, "b": True})).text == "-B"


def test_missing_placeholders_render_empty_and_warn_once():
    result = render("{{x}} and {{x}} and {{y}}", FieldBindings(values={"y": "ok"}))
    assert result.text == " and  and ok"
    assert result.missing == ("x",)
    assert result.warnings == ["No value bound for 'x'"]


def test_missing_inside_omitted_block_is_not_reported():
    result = render("{{#if off}}{{hidden}}{{/if}}done", FieldBindings(flags={"off": False}))
    assert result.text == "done"
    assert result.missing == ()


def test_missing_required_reported_separately():
    result = render(
        "{{a}} {{b}}",
        FieldBindings(values={"a": ""}),
        required_fields=("a",),
    )
    assert result.missing == ("a", "b")
    assert result.missing_required == ("a",)


def test_parse_builds_tree():
    nodes = parse(DEPOSIT_TEMPLATE)
    assert nodes == (
        Text("Party: "),
        Placeholder("partyName"),
        Conditional("hasDeposit", (Text(" Deposit: "), Placeholder("depositAmount"))),
        Text("."),
    )


@pytest.mark.parametrize(
    "body, message",
    [
        ("Hello {{#if a}}world", "Unterminated"),
        ("Hello {{/if}}", "without a matching"),
        ("{{#if}}x{{/if}}", "requires a flag"),
        ("{{#each items}}x", "Unsupported tag"),
        ("{{ }}", "Unsupported tag"),
        ("Hello {{name", "Unclosed"),
    ],
)
def test_malformed_templates_fail(body, message):
    with pytest.raises(TemplateSyntaxError) as exc:
        render(body, FieldBindings())
    assert message in str(exc.value)


def test_syntax_error_reports_position_of_opening_tag():
    with pytest.raises(TemplateSyntaxError) as exc:
        parse("line one\n  {{#if open}}never closed")
    assert exc.value.line == 2
    assert exc.value.column == 3


def test_transforms_format_values():
    assert apply_transform("5000", "currency", currency="AED") == "5,000.00 AED"
    assert apply_transform("2026-01-15", "date", language="en") == "15 January 2026"
    assert apply_transform("2026-01-15", "date", language="ar") == "15 يناير 2026"
    assert apply_transform("not a date", "date") == "not a date"
    assert apply_transform(None, "currency") == ""
    assert format_date(date(2026, 3, 5), "en") == "05 March 2026"


def test_build_bindings_from_request():
    request = GenerationRequest(
        document_type="rental_agreement",
        country="ae",
        jurisdiction="difc",
        parties={
            "party_a": {"name": "Ahmed Ali", "id_number": "784-1"},
            "party_b": {"name": "Sara Khan", "id_number": "784-2", "address": "Dubai Marina"},
        },
        details={"rent_amount": "60000", "pets_allowed": True, "notes": ""},
    )
    bindings = build_bindings(
        request,
        transforms={"rent_amount": "currency"},
        today=date(2026, 1, 15),
    )
    assert bindings.value("party_a_name") == "Ahmed Ali"
    assert bindings.value("party_b_id") == "784-2"
    assert bindings.value("rent_amount") == "60,000.00 AED"
    assert bindings.value("date") == "15 January 2026"
    assert bindings.value("jurisdiction") == "DIFC"
    assert bindings.value("governing_law") == "Laws of United Arab Emirates - DIFC"
    assert bindings.is_set("pets_allowed")
    assert bindings.is_set("has_party_b_address")
    assert not bindings.is_set("has_party_a_address")
    assert not bindings.is_set("has_notes")


def test_build_bindings_localizes_for_arabic():
    request = GenerationRequest(document_type="nda", language="ar", country="sa")
    bindings = build_bindings(request, today=date(2026, 1, 15))
    assert bindings.value("country") == "المملكة العربية السعودية"
    assert bindings.value("governing_law").startswith("قوانين")
    assert bindings.value("date") == "15 يناير 2026"
