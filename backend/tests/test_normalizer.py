"""Tests for the extraction normalizer.

Covers:
- Clean payloads echo their fields and are not degraded
- Independent per-field fallbacks (type, category, date, amount, note)
- Total parse failure produces the fully-defaulted draft
- A normalized draft is a fixed point of ``normalize``
"""

import json
import unittest
from unittest.mock import patch

from voice_ledger.schemas.transaction import TRANSACTION_CATEGORIES, TRANSACTION_TYPES
from voice_ledger.services.ai.transcription.contracts import FieldOutcome
from voice_ledger.services.ai.transcription.normalizer import (
    PayloadParseError,
    fallback_draft,
    normalize,
    normalize_amount,
    parse_payload,
)

TODAY = "2025-06-15"


def _today():
    return TODAY


def _payload(**overrides):
    data = {
        "type": "Income",
        "amount": 15000,
        "category": "Salary",
        "date": "2025-06-01",
        "note": "June salary",
    }
    data.update(overrides)
    return json.dumps(data)


class CleanPayloadTests(unittest.TestCase):
    def test_valid_payload_is_echoed(self):
        result = normalize(_payload(), today_fn=_today)

        self.assertFalse(result.degraded)
        self.assertEqual(result.fallbacks, {})
        draft = result.draft
        self.assertEqual(draft.type, "Income")
        self.assertEqual(draft.amount, 15000.0)
        self.assertEqual(draft.category, "Salary")
        self.assertEqual(draft.date, "2025-06-01")
        self.assertEqual(draft.note, "June salary")

    def test_every_type_and_category_is_accepted(self):
        for type_ in TRANSACTION_TYPES:
            for category in TRANSACTION_CATEGORIES:
                result = normalize(_payload(type=type_, category=category), today_fn=_today)
                self.assertFalse(result.degraded, (type_, category))
                self.assertEqual(result.draft.type, type_)
                self.assertEqual(result.draft.category, category)

    def test_numeric_string_amount_is_coerced(self):
        result = normalize(_payload(amount="15,000"), today_fn=_today)
        self.assertFalse(result.degraded)
        self.assertEqual(result.draft.amount, 15000.0)

    def test_prose_wrapped_object_still_parses(self):
        result = normalize("Here you go: " + _payload() + " Thanks!", today_fn=_today)
        self.assertFalse(result.degraded)
        self.assertEqual(result.draft.category, "Salary")

    def test_normalized_output_is_a_fixed_point(self):
        first = normalize(_payload(type="Bonus", date="yesterday", amount="abc"), today_fn=_today)
        self.assertTrue(first.degraded)

        again = normalize(first.draft.model_dump_json(), today_fn=_today)
        self.assertFalse(again.degraded)
        self.assertEqual(again.draft, first.draft)


class FieldFallbackTests(unittest.TestCase):
    def test_invalid_type_falls_back_to_expense(self):
        result = normalize(_payload(type="Gift"), today_fn=_today)
        self.assertTrue(result.degraded)
        self.assertEqual(result.draft.type, "Expense")
        self.assertIn("type", result.fallbacks)
        # other fields untouched
        self.assertEqual(result.draft.category, "Salary")
        self.assertEqual(result.draft.amount, 15000.0)

    def test_missing_type_falls_back_to_expense(self):
        data = json.loads(_payload())
        del data["type"]
        result = normalize(json.dumps(data), today_fn=_today)
        self.assertTrue(result.degraded)
        self.assertEqual(result.draft.type, "Expense")

    def test_type_is_case_sensitive(self):
        result = normalize(_payload(type="income"), today_fn=_today)
        self.assertTrue(result.degraded)
        self.assertEqual(result.draft.type, "Expense")

    def test_invalid_category_falls_back_to_other(self):
        result = normalize(_payload(category="Groceries"), today_fn=_today)
        self.assertTrue(result.degraded)
        self.assertEqual(result.draft.category, "Other")
        self.assertEqual(set(result.fallbacks), {"category"})

    def test_non_string_category_falls_back(self):
        result = normalize(_payload(category=["Food"]), today_fn=_today)
        self.assertEqual(result.draft.category, "Other")

    def test_bad_dates_fall_back_to_today(self):
        for bad in ("15/06/2025", "2025-6-1", "yesterday", "", 20250601, None, "2025-06-01T10:00"):
            result = normalize(_payload(date=bad), today_fn=_today)
            self.assertTrue(result.degraded, bad)
            self.assertEqual(result.draft.date, TODAY, bad)

    def test_non_ascii_digits_do_not_match_date_pattern(self):
        # Burmese digits for 2025-06-01
        result = normalize(_payload(date="၂၀၂၅-၀၆-၀၁"), today_fn=_today)
        self.assertEqual(result.draft.date, TODAY)

    def test_calendrically_invalid_date_is_kept(self):
        result = normalize(_payload(date="2025-13-40"), today_fn=_today)
        self.assertFalse(result.degraded)
        self.assertEqual(result.draft.date, "2025-13-40")

    def test_date_with_trailing_newline_falls_back_to_today(self):
        for bad in ("2025-06-01\n", "2025-06-01\r\n", " 2025-06-01", "2025-06-01 "):
            result = normalize(_payload(date=bad), today_fn=_today)
            self.assertTrue(result.degraded, repr(bad))
            self.assertEqual(result.draft.date, TODAY, repr(bad))
            self.assertEqual(set(result.fallbacks), {"date"}, repr(bad))

    def test_missing_note_defaults_to_empty_without_degrading(self):
        data = json.loads(_payload())
        del data["note"]
        result = normalize(json.dumps(data), today_fn=_today)
        self.assertFalse(result.degraded)
        self.assertEqual(result.draft.note, "")

    def test_non_string_note_is_stringified(self):
        result = normalize(_payload(note=42), today_fn=_today)
        self.assertFalse(result.degraded)
        self.assertEqual(result.draft.note, "42")

    def test_gift_scenario(self):
        payload = '{"type":"Gift","amount":"15000","category":"Food","date":"2025-13-40","note":"x"}'
        result = normalize(payload, today_fn=_today)

        self.assertTrue(result.degraded)
        self.assertEqual(result.draft.type, "Expense")
        self.assertEqual(result.draft.category, "Food")
        self.assertEqual(result.draft.amount, 15000.0)
        self.assertEqual(result.draft.date, "2025-13-40")
        self.assertEqual(result.draft.note, "x")
        self.assertEqual(set(result.fallbacks), {"type"})


class AmountTests(unittest.TestCase):
    def test_accepts_numbers_and_numeric_strings(self):
        cases = {
            5000: 5000.0,
            12.5: 12.5,
            "  7000 ": 7000.0,
            "1_000": 1000.0,
            "0": 0.0,
        }
        for raw, expected in cases.items():
            outcome = normalize_amount(raw)
            self.assertFalse(outcome.is_fallback, raw)
            self.assertEqual(outcome.value, expected)

    def test_rejects_unusable_values(self):
        for raw in ("abc", "", "5000 kyat", True, None, {"value": 1}, [1], "nan", "inf", -5, "-3"):
            outcome = normalize_amount(raw)
            self.assertTrue(outcome.is_fallback, raw)
            self.assertEqual(outcome.value, 0.0)

    def test_bad_amount_degrades_even_when_rest_is_clean(self):
        result = normalize(_payload(amount="a lot"), today_fn=_today)
        self.assertTrue(result.degraded)
        self.assertEqual(result.draft.amount, 0.0)
        self.assertEqual(set(result.fallbacks), {"amount"})
        self.assertEqual(result.draft.type, "Income")


class ParseFailureTests(unittest.TestCase):
    def test_malformed_payload_yields_full_fallback(self):
        result = normalize("not json at all", today_fn=_today)

        self.assertTrue(result.degraded)
        self.assertIsNotNone(result.parse_error)
        draft = result.draft
        self.assertEqual(draft.type, "Expense")
        self.assertEqual(draft.amount, 0.0)
        self.assertEqual(draft.category, "Other")
        self.assertEqual(draft.date, TODAY)
        self.assertIn("not json at all", draft.note)
        self.assertIn(result.parse_error, draft.note)

    def test_non_object_json_is_a_parse_failure(self):
        for payload in ("[1, 2, 3]", '"Expense"', "42", "null"):
            result = normalize(payload, today_fn=_today)
            self.assertTrue(result.degraded, payload)
            self.assertIsNotNone(result.parse_error, payload)
            self.assertEqual(result.draft.category, "Other")

    def test_empty_payload_is_a_parse_failure(self):
        result = normalize("", today_fn=_today)
        self.assertTrue(result.degraded)
        self.assertEqual(result.draft.amount, 0.0)

    def test_raw_payload_in_note_is_truncated(self):
        result = normalize("x" * 5000, today_fn=_today)
        self.assertLess(len(result.draft.note), 1000)

    def test_parse_payload_raises_for_arrays(self):
        with self.assertRaises(PayloadParseError):
            parse_payload("[]")

    def test_deeply_nested_payload_is_a_parse_failure(self):
        payloads = (
            "[" * 100000,
            "[" * 5000 + "]" * 5000,
            '{"a":' * 5000 + "1" + "}" * 5000,
            '{"type": "Expense", "note": ' + "[" * 5000 + "]" * 5000 + "}",
        )
        for payload in payloads:
            result = normalize(payload, today_fn=_today)
            self.assertTrue(result.degraded)
            self.assertIsNotNone(result.parse_error)
            self.assertEqual(result.draft.type, "Expense")
            self.assertEqual(result.draft.amount, 0.0)
            self.assertEqual(result.draft.category, "Other")
            self.assertEqual(result.draft.date, TODAY)

    def test_parse_payload_rejects_deep_nesting(self):
        with self.assertRaises(PayloadParseError):
            parse_payload('{"a": ' + "[" * 200 + "]" * 200 + "}")

    def test_moderate_nesting_still_parses(self):
        parsed = parse_payload('{"type": "Expense", "meta": ' + "[" * 10 + "]" * 10 + "}")
        self.assertEqual(parsed["type"], "Expense")


class HostileOutputTests(unittest.TestCase):
    def test_normalize_always_returns_a_draft(self):
        payloads = (
            None,
            "\x00\x01",
            "}{",
            '{"type": ',
            '{"amount": 1e400}',
            '{"amount": "1' + "0" * 500 + '"}',
            '{"date": "2025-06-01\\n", "type": "Expense"}',
            '{"note": "' + "n" * 100000 + '"}',
            '{"transcript": {"nested": [1, 2, 3]}}',
            "[" * 100000,
            "{" * 100000,
        )
        for payload in payloads:
            result = normalize(payload, today_fn=_today)
            self.assertIn(result.draft.type, TRANSACTION_TYPES)
            self.assertIn(result.draft.category, TRANSACTION_CATEGORIES)
            self.assertGreaterEqual(result.draft.amount, 0.0)

    def test_field_values_rejected_by_draft_model_yield_full_fallback(self):
        with patch(
            "voice_ledger.services.ai.transcription.normalizer.normalize_date",
            return_value=FieldOutcome("2025-06-01\n"),
        ):
            result = normalize(_payload(), today_fn=_today)

        expected = fallback_draft("x", "", today_fn=_today).draft
        self.assertTrue(result.degraded)
        self.assertIsNotNone(result.parse_error)
        self.assertEqual(result.draft.type, expected.type)
        self.assertEqual(result.draft.category, expected.category)
        self.assertEqual(result.draft.date, TODAY)
