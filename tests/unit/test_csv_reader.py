"""Tests for CSV upload parsing."""

import pytest

from src.ingest.csv_reader import CSVFormatError, parse_csv


class TestParseCsv:
    def test_basic(self):
        rows = parse_csv(b"ClientID,Name\nC1,Acme\nC2,Beta\n")
        assert rows == [{"ClientID": "C1", "Name": "Acme"}, {"ClientID": "C2", "Name": "Beta"}]

    def test_bom_and_whitespace_trimmed(self):
        rows = parse_csv("\ufeff ClientID , Name \n C1 , Acme Pty Ltd \n".encode())
        assert rows == [{"ClientID": "C1", "Name": "Acme Pty Ltd"}]

    def test_quoted_commas(self):
        rows = parse_csv('TxnID,Amount\nT1,"9,700.00"\n')
        assert rows == [{"TxnID": "T1", "Amount": "9,700.00"}]

    def test_blank_rows_skipped(self):
        rows = parse_csv("ClientID,Name\n\n,\nC1,Acme\n")
        assert rows == [{"ClientID": "C1", "Name": "Acme"}]

    def test_short_rows_padded_with_empty_strings(self):
        rows = parse_csv("ClientID,Name,Country\nC1,Acme\n")
        assert rows == [{"ClientID": "C1", "Name": "Acme", "Country": ""}]

    def test_extra_cells_dropped(self):
        rows = parse_csv("ClientID\nC1,extra\n")
        assert rows == [{"ClientID": "C1"}]

    def test_header_only(self):
        assert parse_csv("ClientID,Name\n") == []

    def test_empty_input(self):
        assert parse_csv(b"") == []

    def test_non_utf8_rejected(self):
        with pytest.raises(CSVFormatError):
            parse_csv(b"ClientID,Name\nC1,\xff\xfe\xfa\n")

    def test_format_error_is_a_value_error(self):
        assert issubclass(CSVFormatError, ValueError)
