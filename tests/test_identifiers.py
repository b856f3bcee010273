# tests/test_identifiers.py
"""Unit tests for public identifier generation and card masking."""

import re
import logging

from app.services.identifiers import new_permit_id, new_transaction_id, new_vehicle_id
from app.services.payment_service import mask_card
from app.utils.logger import CardRedactionFilter


class TestIdentifiers:
    def test_formats(self):
        assert re.fullmatch(r"PMT-[A-Z0-9]{8}", new_permit_id())
        assert re.fullmatch(r"TXN-[A-Z0-9]{12}", new_transaction_id())
        assert re.fullmatch(r"VEH-[A-Z0-9]{8}", new_vehicle_id())

    def test_no_repeats_over_ten_thousand(self):
        permits = {new_permit_id() for _ in range(10_000)}
        transactions = {new_transaction_id() for _ in range(10_000)}
        assert len(permits) == 10_000
        assert len(transactions) == 10_000


class TestCardMasking:
    def test_spaced_number(self):
        assert mask_card("4111 1111 1111 1234") == "1234"

    def test_dashed_number(self):
        assert mask_card("5500-0000-0000-0004") == "0004"

    def test_short_input_keeps_what_exists(self):
        assert mask_card("12") == "12"

    def test_no_digits(self):
        assert mask_card("abcd") == ""


class TestLogRedaction:
    def test_card_number_masked_in_log_record(self):
        record = logging.LogRecord("t", logging.INFO, __file__, 1,
                                   "charging %s", ("4111 1111 1111 1234",), None)
        assert CardRedactionFilter().filter(record)
        assert record.getMessage() == "charging ****1234"

    def test_public_ids_untouched(self):
        record = logging.LogRecord("t", logging.INFO, __file__, 1,
                                   "Permit PMT-AB12CD34 issued", None, None)
        CardRedactionFilter().filter(record)
        assert record.getMessage() == "Permit PMT-AB12CD34 issued"
